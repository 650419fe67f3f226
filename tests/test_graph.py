"""Tests for the constraint graph."""

from ecslint.graph import ConstraintGraph
from ecslint.models import ComponentMetadata, Registry


def _registry(deps: dict[str, list[str]] | None = None, conflicts: dict[str, list[str]] | None = None) -> Registry:
    registry = Registry()
    for name, targets in (deps or {}).items():
        registry.ensure(name).dependencies.update(targets)
    for name, targets in (conflicts or {}).items():
        registry.ensure(name).conflicts.update(targets)
    return registry


def _rotations(cycle: list[str]) -> list[list[str]]:
    ring = cycle[:-1]
    return [ring[i:] + ring[:i] + [ring[i]] for i in range(len(ring))]


def test_merge_is_additive():
    registry = _registry(deps={"Velocity": ["Position"]})
    seed = {"Velocity": ComponentMetadata(dependencies={"Transform"})}

    graph = ConstraintGraph.build(registry, seed=seed)

    assert graph.dependencies_of("Velocity") == {"Position", "Transform"}
    assert graph.dependents_of("Position") == {"Velocity"}
    assert graph.dependencies_of("Unknown") == set()


def test_self_edges_are_not_inserted():
    graph = ConstraintGraph.build(_registry(deps={"A": ["A", "B"]}, conflicts={"A": ["A"]}))

    assert graph.dependencies_of("A") == {"B"}
    assert graph.conflicts_of("A") == set()
    assert graph.detect_cycles() == []


def test_conflicts_symmetric_by_default():
    graph = ConstraintGraph.build(_registry(conflicts={"Ghost": ["Health"]}))

    assert graph.conflicts_of("Ghost") == {"Health"}
    assert graph.conflicts_of("Health") == {"Ghost"}
    assert graph.conflict_pairs() == [("Ghost", "Health")]


def test_conflicts_directional_when_configured():
    graph = ConstraintGraph.build(_registry(conflicts={"Ghost": ["Health"]}), symmetric_conflicts=False)

    assert graph.conflicts_of("Ghost") == {"Health"}
    assert graph.conflicts_of("Health") == set()
    # Either declared direction still counts as a conflicting pair.
    assert graph.in_conflict("Health", "Ghost")


def test_detect_self_reference():
    assert ConstraintGraph.detect_self_reference("A", ["B", "A"], "dependencies")
    assert not ConstraintGraph.detect_self_reference("A", ["B"], "conflicts")


def test_detect_contradiction():
    graph = ConstraintGraph.build(_registry(deps={"A": ["B", "C"]}, conflicts={"A": ["B"]}))

    assert graph.detect_contradiction("A") == {"B"}
    assert graph.detect_contradiction("C") == set()


def test_detect_duplicates():
    assert ConstraintGraph.detect_duplicates(["A", "B", "A", "A", "C", "B"]) == {"A", "B"}
    assert ConstraintGraph.detect_duplicates(["A", "B"]) == set()


def test_two_node_cycle():
    graph = ConstraintGraph.build(_registry(deps={"A": ["B"], "B": ["A"]}))

    cycles = graph.detect_cycles()

    assert len(cycles) == 1
    assert len(cycles[0]) == 3
    assert cycles[0] in _rotations(["A", "B", "A"])


def test_three_node_cycle():
    graph = ConstraintGraph.build(_registry(deps={"A": ["B"], "B": ["C"], "C": ["A"]}))

    cycles = graph.detect_cycles()

    assert len(cycles) == 1
    cycle = cycles[0]
    assert len(cycle) == 4
    assert cycle[0] == cycle[-1]
    assert sorted(cycle[:-1]) == ["A", "B", "C"]


def test_no_false_cycle():
    graph = ConstraintGraph.build(_registry(deps={"A": ["B"], "B": ["C"]}))

    assert graph.detect_cycles() == []


def test_diamond_is_not_a_cycle():
    graph = ConstraintGraph.build(_registry(deps={"A": ["B", "C"], "B": ["D"], "C": ["D"]}))

    assert graph.detect_cycles() == []


def test_every_distinct_cycle_is_reported():
    graph = ConstraintGraph.build(
        _registry(deps={"A": ["B"], "B": ["A"], "X": ["Y"], "Y": ["Z"], "Z": ["X"]})
    )

    cycles = graph.detect_cycles()

    assert len(cycles) == 2
    assert sorted(len(c) for c in cycles) == [3, 4]


def test_conflicts_do_not_form_cycles():
    graph = ConstraintGraph.build(_registry(conflicts={"A": ["B"], "B": ["A"]}))

    assert graph.detect_cycles() == []


def test_deep_chain_does_not_hit_recursion_limit():
    chain = {f"C{i}": [f"C{i + 1}"] for i in range(5000)}
    chain["C5000"] = ["C0"]
    graph = ConstraintGraph.build(_registry(deps=chain))

    cycles = graph.detect_cycles()

    assert len(cycles) == 1
    assert len(cycles[0]) == 5002


def test_transitive_dependencies_and_attach_order():
    graph = ConstraintGraph.build(
        _registry(deps={"Rigidbody": ["Velocity", "Collider"], "Velocity": ["Position"], "Collider": ["Position"]})
    )

    assert graph.transitive_dependencies("Rigidbody") == {"Velocity", "Collider", "Position"}

    order = graph.attach_order("Rigidbody")
    assert order[0] == "Position"
    assert order[-1] == "Rigidbody"
    assert set(order) == {"Rigidbody", "Velocity", "Collider", "Position"}


def test_attach_order_omits_cycle_members():
    graph = ConstraintGraph.build(_registry(deps={"A": ["B"], "B": ["A"]}))

    assert "A" not in graph.attach_order("A")


def test_nodes_and_edges():
    graph = ConstraintGraph.build(_registry(deps={"Velocity": ["Position"]}, conflicts={"Ghost": ["Health"]}))

    assert graph.nodes == ["Ghost", "Health", "Position", "Velocity"]
    assert graph.dependency_edges() == [("Velocity", "Position")]
