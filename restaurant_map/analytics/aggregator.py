from __future__ import annotations

from collections import Counter
from typing import Any

PRICE_DIMENSIONS = ("brunch", "lunch", "dinner")


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    queries = [e for e in events if e["type"] == "bounds_query"]
    total = len(queries)

    # Average response time
    times = [q["response_time_ms"] for q in queries if "response_time_ms" in q]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Top categories
    category_counter: Counter[str] = Counter()
    for q in queries:
        for c in q.get("categories", []) or []:
            category_counter[c] += 1
    top_categories = [{"name": n, "count": c} for n, c in category_counter.most_common(10)]

    # Filter usage rates
    filter_counts = {f"{meal}_price": 0 for meal in PRICE_DIMENSIONS}
    filter_counts["category"] = 0
    for q in queries:
        for meal in q.get("price_dimensions", []) or []:
            key = f"{meal}_price"
            if key in filter_counts:
                filter_counts[key] += 1
        if q.get("categories"):
            filter_counts["category"] += 1
    filter_usage = {
        k: round(v / total * 100, 1) if total else 0.0
        for k, v in filter_counts.items()
    }

    # Gate outcomes
    rejected = sum(1 for q in queries if q.get("premium_required"))
    gated = sum(1 for q in queries if q.get("filter_dimensions", 0) > 1)

    results = [q.get("results_returned", 0) for q in queries if not q.get("premium_required")]
    empty_pages = sum(1 for r in results if r == 0)

    return {
        "total_queries": total,
        "avg_response_time_ms": avg_time,
        "top_categories": top_categories,
        "filter_usage": filter_usage,
        "premium": {
            "gated_queries": gated,
            "rejected": rejected,
            "rejection_rate": round(rejected / gated * 100, 1) if gated else 0.0,
        },
        "empty_pages": empty_pages,
    }
