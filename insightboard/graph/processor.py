"""Task graph sanitization and cycle detection."""

import logging
from collections.abc import Iterator, Sequence

from .models import ProcessedTask, RawTask, TaskStatus

logger = logging.getLogger(__name__)


def sanitize_dependencies(tasks: Sequence[RawTask]) -> list[RawTask]:
    """Drop dependency references that do not resolve to a task in the set.

    Each task is filtered independently against the set of all ids in the
    input. Surviving entries keep their order, self references included.

    Args:
        tasks: Tasks as produced by a parser (ids may repeat)

    Returns:
        New task list, same length and order as the input
    """
    known_ids = {task.id for task in tasks}
    sanitized: list[RawTask] = []
    dropped = 0

    for task in tasks:
        dependencies = task.dependencies or []
        kept = [dep for dep in dependencies if dep in known_ids]
        dropped += len(dependencies) - len(kept)
        sanitized.append(task.model_copy(update={"dependencies": kept}))

    if dropped:
        logger.warning("Dropped %s dependency references to unknown tasks", dropped)

    return sanitized


def _find_cycle_members(adjacency: dict[str, list[str]]) -> set[str]:
    """Return every id that lies on a directed cycle.

    Iterative depth-first traversal over ids in sorted order. ``order`` holds
    discovery indexes (resolved or in progress), ``path`` the active path and
    ``on_path`` its membership. When a node finishes with no back reference
    above it, the ids popped from the path form one strongly connected
    component; components larger than one node are cycles, as are self-loops.
    """
    order: dict[str, int] = {}
    low: dict[str, int] = {}
    path: list[str] = []
    on_path: set[str] = set()
    in_cycle: set[str] = set()

    def enter(node: str) -> Iterator[str]:
        order[node] = low[node] = len(order)
        path.append(node)
        on_path.add(node)
        return iter(adjacency.get(node, []))

    for root in sorted(adjacency):
        if root in order:
            continue

        stack: list[tuple[str, Iterator[str]]] = [(root, enter(root))]
        while stack:
            node, deps = stack[-1]
            for dep in deps:
                if dep not in order:
                    stack.append((dep, enter(dep)))
                    break
                if dep in on_path:
                    # Back reference: closes a cycle through the active path
                    low[node] = min(low[node], order[dep])
                    if dep == node:
                        in_cycle.add(node)
            else:
                stack.pop()
                if stack:
                    parent = stack[-1][0]
                    low[parent] = min(low[parent], low[node])

                if low[node] == order[node]:
                    component = []
                    while True:
                        member = path.pop()
                        on_path.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    if len(component) > 1:
                        in_cycle.update(component)

    return in_cycle


def _detect_cycles(tasks: Sequence[RawTask]) -> list[ProcessedTask]:
    """Assign Blocked/Error to tasks on a dependency cycle, Ready otherwise.

    Expects sanitized input. The graph is keyed by id: when ids repeat, the
    last dependency list seen for an id is the one traversed, and every record
    carrying that id receives the same verdict.
    """
    adjacency: dict[str, list[str]] = {}
    for task in tasks:
        adjacency[task.id] = sorted(task.dependencies or [])

    in_cycle = _find_cycle_members(adjacency)
    if in_cycle:
        logger.info(
            "Circular dependencies detected: %s",
            ", ".join(sorted(in_cycle)[:20]) + (" ..." if len(in_cycle) > 20 else ""),
        )

    return [
        ProcessedTask(
            **task.model_dump(exclude={"status"}),
            status=TaskStatus.BLOCKED if task.id in in_cycle else TaskStatus.READY,
        )
        for task in tasks
    ]


def process_graph(tasks: Sequence[RawTask]) -> list[ProcessedTask]:
    """Sanitize dependencies, then mark tasks caught in cycles.

    Args:
        tasks: Raw parser output

    Returns:
        Processed tasks in input order
    """
    processed = _detect_cycles(sanitize_dependencies(tasks))
    logger.debug(
        "Processed %s tasks (%s blocked)",
        len(processed),
        sum(1 for task in processed if task.status == TaskStatus.BLOCKED),
    )
    return processed
