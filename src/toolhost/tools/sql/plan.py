"""
Query plan optimization analysis.

Plans from different databases are first normalized into a common tree of
nodes:

    {"type": "SeqScan", "rows": 5000, "children": [...]}

analyze_plan() then walks the tree in pre-order (a node's own suggestions
before its children's) and applies each rule to each node.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

SEQ_SCAN_ROW_THRESHOLD = 1000
NESTED_LOOP_ROW_THRESHOLD = 10000


@dataclass(frozen=True)
class Suggestion:
    """One optimization hint."""

    type: str
    severity: str
    message: str
    node_type: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PlanRule:
    """Flags nodes of one type whose estimated rows exceed a threshold."""

    node_type: str
    min_rows: int
    type: str
    severity: str
    message: str

    def check(self, node: Mapping[str, Any]) -> Suggestion | None:
        if node.get("type") != self.node_type:
            return None
        rows = node.get("rows") or 0
        if rows <= self.min_rows:
            return None
        return Suggestion(
            type=self.type,
            severity=self.severity,
            message=self.message,
            node_type=self.node_type,
        )


RULES = [
    PlanRule(
        node_type="SeqScan",
        min_rows=SEQ_SCAN_ROW_THRESHOLD,
        type="index",
        severity="high",
        message="Sequential scan on large table. Consider adding an index on the filter column.",
    ),
    PlanRule(
        node_type="NestedLoop",
        min_rows=NESTED_LOOP_ROW_THRESHOLD,
        type="join",
        severity="medium",
        message="Nested loop with large dataset. Consider using hash join or merge join.",
    ),
]


def normalize_node_type(node_type: str) -> str:
    """"Seq Scan" -> "SeqScan", "Nested Loop" -> "NestedLoop"."""
    return "".join(node_type.split())


def normalize_postgres_plan(plan: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a PostgreSQL EXPLAIN (FORMAT JSON) plan node."""
    return {
        "type": normalize_node_type(str(plan.get("Node Type", ""))),
        "rows": plan.get("Plan Rows", 0),
        "children": [normalize_postgres_plan(child) for child in plan.get("Plans", [])],
    }


def normalize_mysql_plan(rows: list[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Normalize MySQL EXPLAIN rows.

    MySQL reports one row per table access; access type "ALL" is a full
    table scan. The rows become children of a synthetic root.
    """
    children = []
    for row in rows:
        access = str(row.get("type") or "")
        children.append({
            "type": "SeqScan" if access.upper() == "ALL" else normalize_node_type(access),
            "rows": row.get("rows") or 0,
            "children": [],
        })
    return {"type": "Query", "rows": 0, "children": children}


def normalize_sqlite_plan(rows: list[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Normalize SQLite EXPLAIN QUERY PLAN rows (id, parent, detail).

    SQLite gives no row estimates, so its nodes never trip a row threshold.
    """
    root: dict[str, Any] = {"type": "Query", "rows": 0, "children": []}
    nodes: dict[Any, dict[str, Any]] = {0: root}
    for row in rows:
        detail = str(row.get("detail", ""))
        if detail.startswith("SCAN"):
            node_type = "SeqScan"
        elif detail.startswith("SEARCH"):
            node_type = "IndexScan"
        else:
            node_type = normalize_node_type(detail.split(" ", 1)[0].title())
        node = {"type": node_type, "rows": 0, "detail": detail, "children": []}
        nodes[row.get("id")] = node
        nodes.get(row.get("parent"), root)["children"].append(node)
    return root


def analyze_plan(node: Any) -> list[Suggestion]:
    """
    Collect suggestions for a normalized plan tree, in pre-order.

    Raw PostgreSQL plan nodes (with a "Node Type" key) are normalized first.
    Anything that is not a mapping yields no suggestions.
    """
    if not isinstance(node, Mapping):
        return []
    if "Node Type" in node:
        node = normalize_postgres_plan(node)

    suggestions = [s for s in (rule.check(node) for rule in RULES) if s is not None]
    for child in node.get("children", []):
        suggestions.extend(analyze_plan(child))
    return suggestions
