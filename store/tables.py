REPORT_TABLE = "Report"
WORK_TABLE = "Work"
PROFILE_TABLE = "Profile"
ACCOUNT_TABLE = "users"
REVIEW_ACTION_TABLE = "ReviewAction"
