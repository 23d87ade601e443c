# File: voicecrm/features/intelligence/data/patterns.py
"""
Keyword tables and regex finders for Thai/English sales conversations.

All finders are pure functions over the transcript text. Keyword checks
expect lower-cased text; regex finders take the original text.
"""
import re
from typing import Dict, List, Optional, Tuple

from voicecrm.core.enums import ActivityType, Category, Priority

# --- Customer identity ---

# (pattern, confidence). The first non-stopword match wins.
NAME_PATTERNS: List[Tuple[re.Pattern, float]] = [
    (re.compile(r"คุณ\s*([ก-๙A-Za-z]+)"), 0.65),
    (re.compile(r"นางสาว\s*([ก-๙A-Za-z]+)"), 0.65),
    (re.compile(r"นาย\s*([ก-๙A-Za-z]+)"), 0.65),
    (re.compile(r"นาง\s*([ก-๙A-Za-z]+)"), 0.65),
    (re.compile(r"พี่\s*([ก-๙A-Za-z]+)"), 0.65),
    (re.compile(r"\b(?:mr|mrs|ms)\.?\s+([A-Za-z]+)", re.IGNORECASE), 0.65),
    (re.compile(r"ลูกค้า\s+([ก-๙A-Za-z]+)"), 0.45),
]

# Words that follow an honorific without being a name.
NAME_STOPWORDS = {"ลูกค้า", "ครับ", "ค่ะ", "คะ"}

COMPANY_PATTERNS = [
    re.compile(r"บริษัท\s*([ก-๙A-Za-z0-9&]+)"),
    re.compile(r"\bcompany\s+([A-Za-z0-9&]+)", re.IGNORECASE),
    re.compile(r"\bcorp\.?\s+([A-Za-z0-9&]+)", re.IGNORECASE),
    re.compile(r"องค์กร\s*([ก-๙A-Za-z0-9]+)"),
]

PHONE_PATTERN = re.compile(r"(\d{2,3}[-.\s]?\d{3}[-.\s]?\d{4})")
EMAIL_PATTERN = re.compile(r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")

# --- Deal value ---

# (pattern, multiplier). Order matters: unit words before plain baht.
VALUE_PATTERNS: List[Tuple[re.Pattern, int]] = [
    (re.compile(r"(\d+(?:,\d{3})*(?:\.\d+)?)\s*ล้าน"), 1_000_000),
    (re.compile(r"(\d+(?:,\d{3})*(?:\.\d+)?)\s*หมื่น"), 10_000),
    (re.compile(r"(\d+(?:,\d{3})*(?:\.\d+)?)\s*(?:บาท|baht)", re.IGNORECASE), 1),
    (re.compile(r"\$\s*(\d+(?:,\d{3})*(?:\.\d+)?)"), 1),
    (re.compile(r"(\d+(?:,\d{3})*(?:\.\d+)?)\s*dollars?", re.IGNORECASE), 1),
]

BUDGET_KEYWORDS = ("งบประมาณ", "budget")

DEAL_STATUS_KEYWORDS = [
    (("สนใจ", "interested"), "qualified"),
    (("เจรจา", "negotiate"), "negotiation"),
    (("ปิดดีล", "close"), "closing"),
]

DEAL_PROBABILITY_KEYWORDS = [
    (("แน่ใจ", "certain"), 90),
    (("น่าจะ", "likely"), 70),
    (("อาจจะ", "maybe"), 50),
]

# --- Classification keywords (first match wins) ---

ACTIVITY_TYPE_KEYWORDS = [
    (("โทร", "call", "phone"), ActivityType.CALL),
    (("ประชุม", "meeting", "พบ"), ActivityType.MEETING),
    (("อีเมล", "email"), ActivityType.EMAIL),
    (("เสนอ", "proposal"), ActivityType.PROPOSAL),
    (("เจรจา", "negotiat"), ActivityType.NEGOTIATION),
    (("ติดตาม", "follow"), ActivityType.FOLLOW_UP_CALL),
    (("เดโม", "demo"), ActivityType.DEMO),
    (("เยี่ยมชม", "site visit"), ActivityType.SITE_VISIT),
]

PRIORITY_KEYWORDS = [
    (("ด่วน", "urgent", "เร่ง"), Priority.URGENT),
    (("สำคัญ", "important", "high"), Priority.HIGH),
]

FOLLOW_UP_KEYWORDS = ("ติดตาม", "follow", "นัดหมาย")

ACTION_PATTERNS = [
    re.compile(r"ต้อง([^.!?\n]+)"),
    re.compile(r"ควร([^.!?\n]+)"),
    re.compile(r"จะ([^.!?\n]+)"),
    re.compile(r"need to ([^.!?\n]+)", re.IGNORECASE),
    re.compile(r"should ([^.!?\n]+)", re.IGNORECASE),
    re.compile(r"will ([^.!?\n]+)", re.IGNORECASE),
    re.compile(r"todo ([^.!?\n]+)", re.IGNORECASE),
    re.compile(r"action ([^.!?\n]+)", re.IGNORECASE),
]
MAX_ACTION_ITEMS = 5

TAG_KEYWORDS: Dict[str, str] = {
    "ซื้อ": "purchase",
    "ขาย": "sales",
    "เทคโนโลยี": "technology",
    "software": "software",
    "hardware": "hardware",
    "service": "service",
    "บริการ": "service",
    "ปรึกษา": "consultation",
    "ฝึกอบรม": "training",
    "สนใจ": "interested",
    "hot-lead": "hot-lead",
    "qualified": "qualified",
}

TITLE_PHRASES: Dict[ActivityType, str] = {
    ActivityType.CALL: "โทรหา",
    ActivityType.MEETING: "ประชุมกับ",
    ActivityType.EMAIL: "ส่งอีเมลถึง",
    ActivityType.VOICE_NOTE: "บันทึกเสียงเกี่ยวกับ",
    ActivityType.DEMO: "เดโมให้",
    ActivityType.PROPOSAL: "เสนอราคาให้",
    ActivityType.NEGOTIATION: "เจรจากับ",
    ActivityType.FOLLOW_UP_CALL: "ติดตามกับ",
    ActivityType.SITE_VISIT: "เยี่ยมชม",
}
DEFAULT_CUSTOMER_LABEL = "ลูกค้า"
DESCRIPTION_LIMIT = 200

# (keywords, category, sub_category, confidence). Evaluated in order; later matches override.
CATEGORY_RULES = [
    (("แนะนำ", "บริษัท", "ผลิตภัณฑ์"), Category.PROSPECTING, "introduction", 0.7),
    (("ความต้องการ", "งบประมาณ", "ปัญหา", "ใช้งาน"), Category.QUALIFICATION, "needs-assessment", 0.8),
    (("demo", "นำเสนอ", "แสดง", "ฟีเจอร์"), Category.PRESENTATION, "product-demo", 0.8),
    (("ราคา", "เงื่อนไข", "ส่วนลด", "ต่อรอง"), Category.NEGOTIATION, "price-discussion", 0.8),
    (("สัญญา", "เซ็น", "ตกลง", "ยืนยัน"), Category.CLOSING, "contract-discussion", 0.9),
    (("ติดตาม", "นัดหมาย", "ครั้งต่อไป", "สัปดาหน้า", "สัปดาห์หน้า"), Category.FOLLOW_UP, "appointment-setting", 0.7),
]
# Prospecting additionally needs a greeting.
PROSPECTING_GREETING = "สวัสดี"
DEFAULT_SUB_CATEGORY = "general"
DEFAULT_CLASSIFICATION_CONFIDENCE = 0.6


def contains_any(text: str, keywords) -> bool:
    return any(k in text for k in keywords)


def has_letters(text: str) -> bool:
    return bool(re.search(r"[^\W\d_]", text or ""))


def find_customer_name(text: str) -> Tuple[Optional[str], float]:
    for pattern, confidence in NAME_PATTERNS:
        for match in pattern.finditer(text):
            name = match.group(1).strip()
            if name and name not in NAME_STOPWORDS:
                return name, confidence
    return None, 0.0


def find_company(text: str) -> Optional[str]:
    for pattern in COMPANY_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1) not in ("จำกัด",):
            return match.group(1).strip()
    return None


def find_phone(text: str) -> Optional[str]:
    match = PHONE_PATTERN.search(text)
    return match.group(1) if match else None


def find_email(text: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(text)
    return match.group(1) if match else None


def parse_amount(raw: str) -> Optional[float]:
    """'1,250,000' -> 1250000.0. Unit words (ล้าน/หมื่น) inside `raw` are honoured."""
    if raw is None:
        return None
    for pattern, multiplier in VALUE_PATTERNS:
        match = pattern.search(raw)
        if match:
            return float(match.group(1).replace(",", "")) * multiplier
    cleaned = re.sub(r"[^\d.]", "", raw.replace(",", ""))
    try:
        return float(cleaned) if cleaned else None
    except ValueError:
        return None


def find_value(text: str) -> Tuple[Optional[float], Optional[str]]:
    """Returns (amount, matched raw figure) for the first currency expression."""
    for pattern, multiplier in VALUE_PATTERNS:
        match = pattern.search(text)
        if match:
            raw = match.group(1)
            return float(raw.replace(",", "")) * multiplier, raw
    return None, None


def find_deal_status(lowered: str) -> Optional[str]:
    for keywords, status in DEAL_STATUS_KEYWORDS:
        if contains_any(lowered, keywords):
            return status
    return None


def find_deal_probability(lowered: str) -> Optional[int]:
    for keywords, probability in DEAL_PROBABILITY_KEYWORDS:
        if contains_any(lowered, keywords):
            return probability
    return None


def find_activity_type(lowered: str) -> Tuple[ActivityType, bool]:
    """Returns (type, matched). Unmatched text is a plain voice note."""
    for keywords, activity_type in ACTIVITY_TYPE_KEYWORDS:
        if contains_any(lowered, keywords):
            return activity_type, True
    return ActivityType.VOICE_NOTE, False


def find_priority(lowered: str) -> Tuple[Priority, bool]:
    for keywords, priority in PRIORITY_KEYWORDS:
        if contains_any(lowered, keywords):
            return priority, True
    return Priority.MEDIUM, False


def find_action_items(text: str) -> List[str]:
    items: List[str] = []
    for pattern in ACTION_PATTERNS:
        for match in pattern.finditer(text):
            item = match.group(1).strip()
            if len(item) > 3 and item not in items:
                items.append(item)
    return items[:MAX_ACTION_ITEMS]


def find_tags(lowered: str) -> List[str]:
    tags: List[str] = []
    for keyword, tag in TAG_KEYWORDS.items():
        if keyword in lowered and tag not in tags:
            tags.append(tag)
    return tags
