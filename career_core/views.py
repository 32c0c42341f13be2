from __future__ import annotations

from typing import Dict, List

from career_core.errors import UnknownViewError
from career_core.schema import RequiredColumnSpec, ViewSchema, any_of
from career_core.slots import COMPANY_OFFERS, COMPANY_OFFERS_BRIEF

JOB_VERTICAL = ("Job Vertical (IT, CORE, BDE)", "Job Vertical")
HOSTEL_STUDENT = ("Hosteller / Days scholar", "Hosteller/Day Scholar")

# ---------------- Student level ----------------
_STUDENT_LEAD = ["Reg Number", "RollNo", "Name", "Dept", "Section", "PI"]
_STUDENT_MARKS = ["10th", "12th", "Diploma", "CGPA", "CutOff", "Training Batch", "Gender"]
_STUDENT_OUTCOME = ["Number Of Company Placed", "Placed or Non Placed", "Maximum Salary", "Quota"]

STUDENTS = ViewSchema(
    name="students",
    title="Career - Student List",
    spec=RequiredColumnSpec.of(*_STUDENT_LEAD, *_STUDENT_MARKS, *_STUDENT_OUTCOME, HOSTEL_STUDENT[0], any_of(*JOB_VERTICAL)),
    template=tuple(
        ["S.No", *_STUDENT_LEAD, JOB_VERTICAL[0], *_STUDENT_MARKS]
        + COMPANY_OFFERS.headers(interleave=True)
        + [*_STUDENT_OUTCOME, HOSTEL_STUDENT[0], "Company Joined"]
    ),
    slots=COMPANY_OFFERS,
    fixed_columns=("S.No", "Company Joined"),
    numeric_columns=("10th", "12th", "Diploma", "CGPA", "CutOff", "Number Of Company Placed", "Maximum Salary"),
    category_filters=("Dept", "Training Batch", "PI", "Gender", "Quota", HOSTEL_STUDENT[0]),
    range_field="Maximum Salary",
    status_field="Placed or Non Placed",
    template_name="career_student_template.csv",
)

_MAIN_LEAD = ["S.No", *_STUDENT_LEAD, *_STUDENT_MARKS, "Placed or Non Placed", "Maximum Salary", "Quota"]

# "incharge" is left out for PI: Incharge is a column of its own here
MAIN_HEADER_ALIASES = {
    "S.No": ("s.no", "s no", "sno", "serial no", "serial number", "sl no"),
    "Reg Number": ("register number", "registration number", "regno", "reg no"),
    "RollNo": ("roll no", "roll number"),
    "Name": ("student name",),
    "Dept": ("department", "branch"),
    "Section": ("sec",),
    "PI": ("pi incharge", "placement incharge"),
    "10th": ("sslc", "class 10", "x"),
    "12th": ("hsc", "class 12", "xii"),
    "CGPA": ("gpa",),
    "CutOff": ("cut off", "cut-off"),
    "Training Batch": ("batch", "year", "passing year", "academic year"),
    "Gender": ("sex",),
    "Placed or Non Placed": ("placement status", "status", "placed/non placed", "placed - non placed"),
    "Maximum Salary": ("max salary", "package", "ctc", "salary"),
    "Quota": ("category",),
    HOSTEL_STUDENT[0]: (
        HOSTEL_STUDENT[1],
        "hosteller / day scholar",
        "hosteller",
        "day scholar",
        "hostel/day",
    ),
}

MAIN_DASHBOARD = ViewSchema(
    name="main_dashboard",
    title="Career - Main Dashboard",
    spec=RequiredColumnSpec.of(*_MAIN_LEAD, any_of(*HOSTEL_STUDENT)),
    template=tuple(_MAIN_LEAD + [HOSTEL_STUDENT[0], "Company Joined"] + COMPANY_OFFERS_BRIEF.headers(interleave=False)),
    slots=COMPANY_OFFERS_BRIEF,
    fixed_columns=("Company Joined", "Incharge"),
    numeric_columns=("10th", "12th", "Diploma", "CGPA", "CutOff", "Maximum Salary"),
    category_filters=("Dept", "Training Batch", "PI", "Incharge", "Gender", "Quota", HOSTEL_STUDENT[0]),
    range_field="Maximum Salary",
    status_field="Placed or Non Placed",
    template_name="career_main_dashboard_template.csv",
    header_aliases=MAIN_HEADER_ALIASES,
)

# ---------------- Company level ----------------
COMPANY_FIXED = ("S.No", "Company Name", "Package", "Organized", "Total")
DEFAULT_DEPARTMENTS = ("AD", "AIML", "BME", "CSBS", "CHEM", "CIVIL", "CSE", "ECE", "EEE", "IT", "MCT", "MECH")

COMPANY = ViewSchema(
    name="company",
    title="Career - Company Wise Analysis",
    spec=RequiredColumnSpec.of("Company Name", "Package", "Organized"),
    template=tuple(COMPANY_FIXED[:4] + DEFAULT_DEPARTMENTS + COMPANY_FIXED[4:]),
    fixed_columns=COMPANY_FIXED,
    numeric_columns=("Package", "Total"),
    category_filters=("Organized",),
    range_field="Package",
    template_name="company_analysis_template.csv",
    extras_excluded=COMPANY_FIXED,
)

# ---------------- Department summaries ----------------
ALL_ANALYSIS_COLUMNS = (
    "S.No", "Dept", "PI", "Batch", "Incharge", "Total", "No Of Student Placed", "Balance", "Percentage", "Not in Batch", "Package",
)
ALL_ANALYSIS = ViewSchema(
    name="all_analysis",
    title="Career - All Analysis",
    spec=RequiredColumnSpec.of(*ALL_ANALYSIS_COLUMNS),
    template=ALL_ANALYSIS_COLUMNS,
    numeric_columns=("Total", "No Of Student Placed", "Balance", "Percentage", "Not in Batch", "Package"),
    category_filters=("Dept", "Batch", "PI", "Incharge"),
    range_field="Package",
    status_field="No Of Student Placed",
    status_mode="count",
    template_name="career_all_analysis_template.csv",
)

BATCH_COLUMNS = ("S.No", "Dept", "Total", "PI", "No Of Student Placed", "Balance", "Batch", "Package", "Placed Percentage")
BATCH = ViewSchema(
    name="batch",
    title="Career - Batch Analysis",
    spec=RequiredColumnSpec.of(*BATCH_COLUMNS),
    template=BATCH_COLUMNS,
    numeric_columns=("Total", "No Of Student Placed", "Balance", "Package", "Placed Percentage"),
    category_filters=("Dept", "Batch", "PI", "Incharge"),
    range_field="Package",
    status_field="No Of Student Placed",
    status_mode="count",
    template_name="career_batch_template.csv",
)

PLACEMENT_OFFER_COLUMNS = ("S.No", "Dept", "Total", "PI", "No Of Student Placed", "Balance", "Batch", "OverAll Percentage", "Package")
PLACEMENT_OFFER = ViewSchema(
    name="placement_offer",
    title="Career - Placement Offer",
    spec=RequiredColumnSpec.of(*PLACEMENT_OFFER_COLUMNS),
    template=PLACEMENT_OFFER_COLUMNS,
    numeric_columns=("Total", "No Of Student Placed", "Balance", "OverAll Percentage", "Package"),
    category_filters=("Dept", "Batch", "PI"),
    range_field="Package",
    status_field="No Of Student Placed",
    status_mode="count",
    template_name="career_placement_offer_template.csv",
)

# ---------------- Segment summaries ----------------
GENDER_COLUMNS = (
    "S.No", "Dept", "Total", "PI", "Total Male", "PI Male", "Total Female", "PI Female", "Placed Male", "Placed Female",
    "Male Placed %", "Female Placed %", "Total %", "Package", "Gender", "Batch",
)
GENDER = ViewSchema(
    name="gender",
    title="Career - Gender Analysis",
    spec=RequiredColumnSpec.of(*GENDER_COLUMNS),
    template=GENDER_COLUMNS,
    numeric_columns=("Total", "Total Male", "Total Female", "Placed Male", "Placed Female", "Package"),
    category_filters=("Dept", "Batch", "PI", "Gender"),
    range_field="Package",
    template_name="career_gender_template.csv",
)

QUOTA_COLUMNS = (
    "S.No", "Dept", "Total", "PI", "Quota", "Total MQ", "PI MQ", "Total GQ", "PI GQ", "Total International", "PI International",
    "Placed MQ", "Placed GQ", "Placed International", "MQ Placed %", "GQ Placed %", "International Placed %", "Total %",
)
SEGMENT_OPTIONAL = ("Batch", "Incharge", "Package")
QUOTA = ViewSchema(
    name="quota",
    title="Career - Quota Analysis",
    spec=RequiredColumnSpec.of(*QUOTA_COLUMNS),
    template=QUOTA_COLUMNS + SEGMENT_OPTIONAL,
    fixed_columns=SEGMENT_OPTIONAL,
    numeric_columns=("Total", "Total MQ", "Total GQ", "Total International", "Placed MQ", "Placed GQ", "Placed International"),
    category_filters=("Dept", "Batch", "PI", "Incharge", "Quota"),
    range_field="Package",
    template_name="career_quota_template.csv",
)

HOSTEL_COLUMNS = (
    "S.No", "Dept", "Total", "PI", "Total Hostl", "PI Hostl", "Placed Hostl", "Placed Days", "Hostl Placed %", "Days Placed %",
    "Total %", "Hosteller/Day Scholar",
)
HOSTEL = ViewSchema(
    name="hostel",
    title="Career - Hosteller / Day Scholar Analysis",
    spec=RequiredColumnSpec.of(*HOSTEL_COLUMNS),
    template=HOSTEL_COLUMNS + SEGMENT_OPTIONAL,
    fixed_columns=SEGMENT_OPTIONAL,
    numeric_columns=("Total", "Total Hostl", "Placed Hostl", "Placed Days"),
    category_filters=("Dept", "Batch", "PI", "Incharge", "Hosteller/Day Scholar"),
    range_field="Package",
    template_name="career_hostel_template.csv",
)

VIEWS: Dict[str, ViewSchema] = {
    v.name: v
    for v in (STUDENTS, MAIN_DASHBOARD, COMPANY, ALL_ANALYSIS, BATCH, PLACEMENT_OFFER, GENDER, QUOTA, HOSTEL)
}


def get_view(name: str) -> ViewSchema:
    try:
        return VIEWS[name]
    except KeyError:
        raise UnknownViewError(name) from None


def template_headers(name: str) -> List[str]:
    return list(get_view(name).template)
