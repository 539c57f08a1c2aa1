"""Gradebook and headline numbers for the teacher console."""
from tutor_portal import store
from tutor_portal.admin import list_students
from tutor_portal.curriculum import completion_percent, fetch_curriculum, graded_topics

LOW_SCORE = 50
HIGH_SCORE = 80
TOP_GRADE_SCORE = 90


def recent_results(db_path: str, limit: int = 50) -> list[dict]:
    """Latest progress rows, newest first, with their topic title and subject."""
    rows = store.select(
        db_path, "progress",
        columns=["student_email", "topic_id", "score", "status", "updated_at"],
        order_by="updated_at", descending=True, limit=limit,
    )
    topics = {row["id"]: row for row in store.select(db_path, "topics")}
    subjects = {row["id"]: row["subject"] for row in store.select(db_path, "modules")}
    results = []
    for row in rows:
        topic = topics.get(row["topic_id"])
        results.append({
            **row,
            "score": row["score"] or 0,
            "title": topic["title"] if topic else None,
            "subject": subjects.get(topic["module_id"]) if topic else None,
        })
    return results


def filter_results(results: list[dict], search: str = "", band: str = "all") -> list[dict]:
    search = search.lower()
    filtered = []
    for result in results:
        if search and search not in result["student_email"].lower() \
                and search not in result["topic_id"].lower():
            continue
        if band == "low" and result["score"] >= LOW_SCORE:
            continue
        if band == "high" and result["score"] < HIGH_SCORE:
            continue
        filtered.append(result)
    return filtered


def results_average(results: list[dict]) -> int:
    if not results:
        return 0
    return int(sum(result["score"] for result in results) / len(results) + 0.5)


def student_overview(db_path: str) -> dict:
    """Headline numbers across all students."""
    students = list_students(db_path)
    completions = []
    top_grades = 0
    for email in students:
        modules = fetch_curriculum(db_path, email)
        completions.append(completion_percent(modules))
        top_grades += sum(1 for topic in graded_topics(modules) if topic.score >= TOP_GRADE_SCORE)
    avg_completion = int(sum(completions) / len(completions) + 0.5) if completions else 0
    return {
        "active_students": len(students),
        "avg_completion": avg_completion,
        "top_grades": top_grades,
    }
