# eventops/views.py
"""
Derived views over already-loaded collections.

Everything here works on the JSON shapes produced by `eventops.schemas`
(`task_out`, `department_out`...), never on the database, so the same
functions back the HTML pages and can be tested without a session.
"""
import calendar
import logging
from datetime import date, datetime

log = logging.getLogger("eventops.views")

STATUS_BUCKETS = ("completed", "in_progress", "not_started", "blocked")

# Fixed window shown by the timeline page
TIMELINE_START = date(2024, 12, 1)
TIMELINE_END = date(2025, 9, 1)

MAX_UPLOAD_SIZE = 5 * 1024 * 1024   # 5MB
ACCEPTED_CONTENT_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
)


def parse_due(value):
    """datetime / date / ISO string -> datetime, anything else -> None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            log.warning("Unparseable due date %r", value)
            return None
    return None


# ================== Dashboard ==================

def count_by_status(tasks) -> dict:
    counts = {bucket: 0 for bucket in STATUS_BUCKETS}
    for task in tasks:
        status = task.get("status")
        if status in counts:
            counts[status] += 1
    return counts


# ================== Task filters ==================

def task_month(task):
    due = parse_due(task.get("dueDate"))
    if due is None:
        return None
    return f"{due.year:04d}-{due.month:02d}"


def month_options(tasks) -> list:
    return sorted({m for m in (task_month(t) for t in tasks) if m})


def month_label(month: str) -> str:
    # "2025-03" -> "March 2025"
    try:
        year, month_num = (int(x) for x in month.split("-"))
        return f"{calendar.month_name[month_num]} {year}"
    except (ValueError, IndexError):
        return month


def _is_all(value) -> bool:
    return value is None or value == "" or value == "all"


def filter_tasks(tasks, department=None, status=None, month=None) -> list:
    """
    Conjunctive filter. "all" (or None) switches a criterion off.
    Month compares year-month of the due date only.
    """
    result = []
    for task in tasks:
        if not _is_all(department) and department not in (task.get("departments") or []):
            continue
        if not _is_all(status) and task.get("status") != status:
            continue
        if not _is_all(month) and task_month(task) != month:
            continue
        result.append(task)
    return result


# ================== Timeline ==================

def timeline_months(start: date = TIMELINE_START, end: date = TIMELINE_END) -> list:
    months = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        months.append(date(year, month, 1))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return months


def bar_right_offset(due: datetime, month_index: int, month_count: int) -> float:
    """
    Distance (percent of the full width) from the right edge of the timeline
    to the end of a bar due on `due`, which falls in column `month_index`.
    """
    days_in_month = calendar.monthrange(due.year, due.month)[1]
    through_month = due.day / days_in_month
    months_from_end = month_count - month_index - 1
    return (months_from_end + (1 - through_month)) / month_count * 100


def build_timeline(tasks, start: date = TIMELINE_START, end: date = TIMELINE_END) -> list:
    months = timeline_months(start, end)
    if not months:
        return []
    column = {(m.year, m.month): i for i, m in enumerate(months)}

    bars = []
    for task in tasks:
        due = parse_due(task.get("dueDate"))
        if due is None:
            continue
        index = column.get((due.year, due.month))
        if index is None:
            # outside the displayed window
            continue
        right = bar_right_offset(due, index, len(months))
        bars.append(
            {
                "task": task,
                "departments": list(task.get("departments") or []),
                "month_index": index,
                "right": round(right, 4),
                "width": round(100 - right, 4),
            }
        )
    return bars


def today_marker(today=None, start: date = TIMELINE_START, end: date = TIMELINE_END):
    today = parse_due(today) if today is not None else datetime.utcnow()
    span = (end - start).days
    if span <= 0:
        return None
    offset = (today.date() - start).days / span * 100
    if offset < 0 or offset > 100:
        return None
    return round(offset, 4)


# ================== Department search ==================

def _contains(value, query: str) -> bool:
    return query in str(value or "").lower()


def search_departments(departments, query, documents_by_department=None) -> list:
    """
    Case-insensitive substring search over department names, overseer
    name/email/phone and document names. A blank query returns everything.
    """
    if not query or not query.strip():
        return list(departments)

    query = query.strip().lower()
    documents_by_department = documents_by_department or {}

    result = []
    for dept in departments:
        if _contains(dept.get("name"), query) or _contains(dept.get("fullName"), query):
            result.append(dept)
            continue

        overseers = dept.get("overseers") or []
        if any(
            _contains(o.get("name"), query)
            or _contains(o.get("email"), query)
            or _contains(o.get("phone"), query)
            for o in overseers
        ):
            result.append(dept)
            continue

        documents = dept.get("documents") or documents_by_department.get(dept.get("id")) or []
        if any(_contains(d.get("name"), query) for d in documents):
            result.append(dept)
    return result


# ================== Uploads ==================

def validate_upload(size: int, content_type: str):
    """Error message for an unacceptable upload, or None."""
    if size > MAX_UPLOAD_SIZE:
        return "Max file size is 5MB"
    base_type = (content_type or "").split(";")[0].strip().lower()
    if base_type not in ACCEPTED_CONTENT_TYPES:
        return "Only PDF, Word documents, and text files are accepted"
    return None
