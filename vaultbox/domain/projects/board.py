"""Kanban board and sticky-note normalisation.

Clients send whole boards; everything is clamped to fixed limits before it
is stored so a single document cannot grow without bound.
"""
import math
from typing import Any, Dict, List, Optional

from vaultbox.domain.records import now_iso

CARD_TYPES = ("sap", "general", "note")
STICKY_COLORS = ("yellow", "pink", "blue", "green", "purple")

MAX_SHARE_LOG = 300
MAX_TAGS = 12
MAX_COMMENTS = 50
MAX_EMAILS = 25
MAX_STICKIES = 100
MAX_ESTIMATE_HOURS = 100000

SAP_COLUMNS = [
    ("backlog", "Backlog"),
    ("analysis", "Analysis"),
    ("dev", "Dev"),
    ("qa", "QA"),
    ("ready_prod", "Ready for Production"),
    ("in_prod", "In Production"),
    ("done_prod", "Done in Production"),
    ("approved", "Approved"),
]

GENERAL_COLUMNS = [
    ("backlog", "Backlog"),
    ("todo", "To Do"),
    ("doing", "Doing"),
    ("review", "Review/QA"),
    ("done", "Done"),
    ("approved", "Approved"),
]


def parse_project_type(raw: Any) -> str:
    return "general" if str(raw or "sap").lower() == "general" else "sap"


def default_board(now: str, project_type: str) -> Dict[str, Any]:
    columns = SAP_COLUMNS if project_type == "sap" else GENERAL_COLUMNS
    if project_type == "sap":
        description = ("Create cards for SAP requests, questions, transports, "
                       "QA/Production and approvals.")
    else:
        description = "Create cards for questions, backlog, pending items and deliveries."
    return {
        "columns": [{"id": cid, "title": title} for cid, title in columns],
        "cards": [{
            "id": "welcome",
            "columnId": "backlog",
            "title": "Start by creating your tasks here",
            "description": description,
            "type": project_type,
            "createdAt": now,
            "updatedAt": now,
        }],
    }


def _clip(value: Any, limit: int) -> Optional[str]:
    return str(value)[:limit] if value else None


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def _normalize_card(c: Dict[str, Any], now: str) -> Dict[str, Any]:
    estimate = _number(c.get("estimateHours"))
    tags = c.get("tags")
    comments = c.get("comments")
    emails = c.get("emails")
    return {
        "id": c["id"][:64],
        "columnId": c["columnId"][:64],
        "title": c["title"][:120],
        "description": _clip(c.get("description"), 2000),
        "estimateHours": _clamp(estimate, 0, MAX_ESTIMATE_HOURS) if estimate is not None else None,
        "type": c.get("type") if c.get("type") in CARD_TYPES else None,
        "tags": [t[:32] for t in tags if isinstance(t, str)][:MAX_TAGS] if isinstance(tags, list) else None,
        "comments": [
            {
                "at": x["at"] if isinstance(x.get("at"), str) else now,
                "author": _clip(x.get("author"), 120),
                "text": x["text"][:2000],
            }
            for x in comments
            if isinstance(x, dict) and isinstance(x.get("text"), str)
        ][:MAX_COMMENTS] if isinstance(comments, list) else None,
        "emails": [
            {
                "at": x["at"] if isinstance(x.get("at"), str) else now,
                "subject": _clip(x.get("subject"), 160),
                "body": x["body"][:15000],
            }
            for x in emails
            if isinstance(x, dict) and isinstance(x.get("body"), str)
        ][:MAX_EMAILS] if isinstance(emails, list) else None,
        "qaNotes": _clip(c.get("qaNotes"), 4000),
        "prodNotes": _clip(c.get("prodNotes"), 4000),
        "approvedAt": c["approvedAt"] if isinstance(c.get("approvedAt"), str) else None,
        "createdAt": c["createdAt"] if isinstance(c.get("createdAt"), str) else now,
        "updatedAt": now,
    }


def normalize_board(incoming: Dict[str, Any], now: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
    """Drop malformed columns/cards and clamp the rest."""
    now = now or now_iso()
    columns = incoming.get("columns") if isinstance(incoming.get("columns"), list) else []
    cards = incoming.get("cards") if isinstance(incoming.get("cards"), list) else []

    norm_columns = [
        {"id": c["id"][:64], "title": c["title"][:64]}
        for c in columns
        if isinstance(c, dict) and isinstance(c.get("id"), str) and isinstance(c.get("title"), str)
    ]
    norm_cards = [
        _normalize_card(c, now)
        for c in cards
        if isinstance(c, dict)
        and isinstance(c.get("id"), str)
        and isinstance(c.get("columnId"), str)
        and isinstance(c.get("title"), str)
    ]
    return {"columns": norm_columns, "cards": norm_cards}


def normalize_stickies(incoming: Any, uid: str, now: Optional[str] = None) -> List[Dict[str, Any]]:
    now = now or now_iso()
    if not isinstance(incoming, list):
        return []

    stickies = []
    for s in incoming:
        if not (isinstance(s, dict) and isinstance(s.get("id"), str) and isinstance(s.get("text"), str)):
            continue
        x = _number(s.get("x"))
        y = _number(s.get("y"))
        rotation = _number(s.get("rotation"))
        stickies.append({
            "id": s["id"][:64],
            "text": s["text"][:2000],
            "color": s.get("color") if s.get("color") in STICKY_COLORS else "yellow",
            "x": _clamp(x, 0, 2000) if x is not None else 0,
            "y": _clamp(y, 0, 2000) if y is not None else 0,
            "rotation": _clamp(rotation, -8, 8) if rotation is not None else 0,
            "updatedAt": now,
            "createdAt": s["createdAt"] if isinstance(s.get("createdAt"), str) else now,
            "createdBy": s["createdBy"] if isinstance(s.get("createdBy"), str) else uid,
        })
    return stickies[:MAX_STICKIES]


def is_owner(project: Dict[str, Any], uid: str) -> bool:
    return project.get("ownerUid") == uid


def is_member(project: Dict[str, Any], uid: str) -> bool:
    shared = project.get("sharedWith")
    return is_owner(project, uid) or (isinstance(shared, list) and uid in shared)
