import re
from typing import Dict, Optional, Tuple
from ..models import ContentKind, EntitlementRequest

_PLAN_ALIASES: Dict[str, str] = {
    "WEEKLY": "weekly",
    "MONTHLY": "monthly",
    "QUARTERLY": "quarterly",
    "3 MONTH": "quarterly",
    "3 MONTHS": "quarterly",
    "YEARLY": "yearly",
    "1 YEAR": "yearly",
    "LIFETIME": "lifetime",
}

# (document, standard video, premium video)
_DOWNLOAD_TABLE: Dict[str, Tuple[bool, bool, bool]] = {
    "weekly": (False, False, False),
    "monthly": (False, False, False),
    "quarterly": (True, True, False),
    "yearly": (True, True, True),
    "lifetime": (True, True, True),
}

def normalize_plan(plan: Optional[str]) -> Optional[str]:
    if not plan:
        return None
    key = re.sub(r"[\s_-]+", " ", plan).strip().upper()
    return _PLAN_ALIASES.get(key)

def evaluate(request: EntitlementRequest) -> bool:
    tier = normalize_plan(request.learner_plan)
    if tier is None:
        return False
    document, video, premium_video = _DOWNLOAD_TABLE[tier]
    if request.content_kind == ContentKind.DOCUMENT:
        return document
    return premium_video if request.is_premium else video

def can_download(plan: Optional[str], kind: ContentKind, is_premium: bool = False) -> bool:
    return evaluate(EntitlementRequest(learner_plan=plan, content_kind=kind, is_premium=is_premium))
