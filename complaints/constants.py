CATEGORY_CHOICES = [
    ("ragging", "Ragging"),
    ("harassment", "Harassment"),
    ("mental-health", "Mental Health"),
    ("faculty-misconduct", "Faculty Misconduct"),
    ("others", "Others"),
]
CATEGORY_DESCRIPTIONS = {
    "ragging": "Any form of ragging, bullying, or intimidation by senior students.",
    "harassment": "Sexual harassment, discrimination, or any form of inappropriate behavior.",
    "mental-health": "Concerns about mental health support, counseling, or psychological well-being.",
    "faculty-misconduct": "Inappropriate behavior, bias, or unprofessional conduct by faculty members.",
    "others": "Any other campus-related issues that don't fit into the above categories.",
}

STATUS_PENDING = "pending"
STATUS_IN_REVIEW = "in-review"
STATUS_RESOLVED = "resolved"
STATUS_CHOICES = [
    (STATUS_PENDING, "Pending"),
    (STATUS_IN_REVIEW, "In Review"),
    (STATUS_RESOLVED, "Resolved"),
]
STATUS_DESCRIPTIONS = {
    STATUS_PENDING: "Your complaint has been received and is waiting for initial review.",
    STATUS_IN_REVIEW: "Our team is actively investigating your complaint and gathering information.",
    STATUS_RESOLVED: "The issue has been addressed and appropriate action has been taken.",
}

FILTER_ALL = "all"

TIMELINE_CASE_CREATED = "case_created"
TIMELINE_STATUS_CHANGE = "status_change"
TIMELINE_ADMIN_NOTE = "admin_note"

ATTACHMENT_EXTENSIONS = [".jpg", ".jpeg", ".png", ".pdf", ".doc", ".docx"]
