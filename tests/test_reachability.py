from __future__ import annotations

from hypothesis import given
from hypothesis import settings as hypo_settings
from hypothesis import strategies as st

from bundlegrind.graph.generator import ModuleGraphGenerator
from bundlegrind.graph.model import Binding, ExportRef, Module, ModuleGraph
from bundlegrind.graph.random_choice import RandomChoice
from bundlegrind.graph.reachability import ReachabilityAnalyzer
from toolchain_fakes import interpret


def _module(module_id: str, originals: list[str]) -> Module:
    return Module(
        id=module_id,
        originals=list(originals),
        exports=[ExportRef(module_id=module_id, name=name) for name in originals],
    )


def test_cycle_terminates_with_finite_effects() -> None:
    a = _module("e0", ["export_a"])
    b = _module("e1", ["export_b"])
    a.imports.append(Binding(module_id="e1", name="export_b", mode="static"))
    a.side_effects.append("export_b")
    b.imports.append(Binding(module_id="e0", name="export_a", mode="dynamic"))
    b.side_effects.append("export_a")
    analyzer = ReachabilityAnalyzer(ModuleGraph(modules=[a, b]))
    assert analyzer.expected_effects("e0") == {"export_a", "export_b"}
    assert analyzer.expected_effects("e1") == {"export_a", "export_b"}


def test_self_loop_via_reexport_chain_terminates() -> None:
    a = _module("e0", ["export_a"])
    a.imports.append(Binding(module_id="e0", name="export_z", mode="static"))
    assert ReachabilityAnalyzer(ModuleGraph(modules=[a])).expected_effects("e0") == set()


def test_transitive_effects_are_collected() -> None:
    a = _module("e0", ["export_a"])
    b = _module("e1", ["export_b"])
    c = _module("e2", ["export_c"])
    a.imports.append(Binding(module_id="e1", name="export_b", mode="static"))
    b.imports.append(Binding(module_id="e2", name="export_c", mode="dynamic"))
    c.imports.append(Binding(module_id="e0", name="export_a", mode="static"))
    c.side_effects.append("export_a")
    graph = ModuleGraph(modules=[a, b, c])
    assert ReachabilityAnalyzer(graph).expected_effects("e0") == {"export_a"}


def test_effects_of_unreached_modules_are_not_expected() -> None:
    a = _module("e0", ["export_a"])
    b = _module("e1", ["export_b"])
    b.imports.append(Binding(module_id="e0", name="export_a", mode="static"))
    b.side_effects.append("export_a")
    graph = ModuleGraph(modules=[a, b])
    assert ReachabilityAnalyzer(graph).expected_effects("e0") == set()
    assert ReachabilityAnalyzer(graph).expected_effects("e1") == {"export_a"}


def test_side_effect_names_are_probed_as_module_ids() -> None:
    # A module id that collides with a side-effect name would be entered.
    decoy = _module("export_b", ["export_decoy"])
    decoy.side_effects.append("export_decoy")
    a = _module("e0", ["export_a"])
    a.imports.append(Binding(module_id="e1", name="export_b", mode="static"))
    a.side_effects.append("export_b")
    b = _module("e1", ["export_b"])
    graph = ModuleGraph(modules=[a, b, decoy])
    assert ReachabilityAnalyzer(graph).expected_effects("e0") == {"export_b", "export_decoy"}


def test_unknown_entrypoint_yields_nothing() -> None:
    graph = ModuleGraph(modules=[_module("e0", ["export_a"])])
    assert ReachabilityAnalyzer(graph).expected_effects("missing") == set()


@hypo_settings(max_examples=150, deadline=None)
@given(seed=st.integers(min_value=0, max_value=2**32 - 1))
def test_expected_effects_fire_under_module_semantics(seed: int) -> None:
    graph = ModuleGraphGenerator(RandomChoice(seed)).generate()
    for module in graph:
        expected = ReachabilityAnalyzer(graph).expected_effects(module.id)
        assert expected <= set(interpret(graph, module.id))
