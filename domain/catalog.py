from __future__ import annotations

REPORT_REASONS: dict[str, str] = {
    "inappropriate": "เนื้อหาไม่เหมาะสม",
    "spam": "สแปม / โฆษณาเกินจริง",
    "copyright": "ละเมิดลิขสิทธิ์",
    "harassment": "คุกคาม / ให้ร้ายผู้อื่น",
    "other": "อื่น ๆ",
}

DECISION_LABELS: dict[str, str] = {
    "delete": "ลบโพสต์",
    "reject": "ยกเลิกรายงาน",
}

UNKNOWN_USER = "unknown user"
UNKNOWN_WORK = "unknown work"


def reason_text(keys: list[str]) -> str:
    return ", ".join(REPORT_REASONS[key] for key in keys)
