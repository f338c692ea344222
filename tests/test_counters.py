import numpy as np
import pytest

from conftest import FakeHistos
from objects import TriggerLevel, TriggerResult, Jet, Vertex
from counters import TriggerChainCounter, EfficiencyReport, JetPlots, clopper_pearson, ratio, format_percent, closest_jet, delta_phi


def make_counter(levels, path="HLT_BTagIP_Jet180", verbose=0):
    return TriggerChainCounter(path, levels, verbose)


def test_accepted_event_then_rejection(btag_levels):
    counter = make_counter(btag_levels)
    counter.update(True, 0)
    counter.update(False, 1)
    assert counter.pass_counts == [2, 1, 1]
    report = counter.report()
    assert report.step[1] == pytest.approx(0.5)
    assert report.cumulative[2] == pytest.approx(0.5)


def test_two_rejections_at_different_filters(btag_levels):
    counter = make_counter(btag_levels)
    counter.update(False, 2)
    counter.update(False, 1)
    assert counter.pass_counts == [2, 1, 0]
    report = counter.report()
    assert report.step[1] == pytest.approx(0.5)
    assert report.cumulative[2] == pytest.approx(0.0)


def test_rejection_at_first_filter_counts_nothing(btag_levels):
    counter = make_counter(btag_levels)
    counter.update(False, 0)
    assert counter.pass_counts == [0, 0, 0]


def test_no_events_gives_nan(btag_levels):
    report = make_counter(btag_levels).report()
    assert list(report.pass_counts) == [0, 0, 0]
    assert np.all(np.isnan(report.step))
    assert np.all(np.isnan(report.cumulative))


def test_first_level_efficiency_is_nan(btag_levels):
    counter = make_counter(btag_levels)
    for _ in range(3):
        counter.update(True, 0)
    report = counter.report()
    assert np.isnan(report.step[0])
    assert np.isnan(report.cumulative[0])
    assert report.step[1] == pytest.approx(1.0)


def test_zero_intermediate_count_gives_nan_step(btag_levels):
    counter = make_counter(btag_levels)
    counter.update(False, 1)
    report = counter.report()
    assert list(report.pass_counts) == [1, 0, 0]
    assert report.step[1] == pytest.approx(0.0)
    assert np.isnan(report.step[2])
    assert report.cumulative[2] == pytest.approx(0.0)


def test_report_is_repeatable(btag_levels):
    counter = make_counter(btag_levels)
    counter.update(True, 0)
    counter.update(False, 2)
    first = counter.report()
    second = counter.report()
    np.testing.assert_array_equal(first.pass_counts, second.pass_counts)
    np.testing.assert_array_equal(first.step, second.step)
    assert counter.pass_counts == [2, 2, 1]


def test_counts_never_increase_along_the_path(btag_levels):
    rng = np.random.default_rng(7)
    counter = make_counter(btag_levels)
    for _ in range(500):
        counter.update(bool(rng.random() < 0.2), int(rng.integers(0, 5)))
    counts = counter.pass_counts
    assert all(counts[i] >= counts[i + 1] for i in range(len(counts) - 1))
    report = counter.report()
    ok = ~np.isnan(report.step)
    assert np.all((report.step[ok] >= 0.) & (report.step[ok] <= 1.))


def test_empty_level_list():
    counter = make_counter([])
    counter.update(True, 0)
    report = counter.report()
    assert len(report.pass_counts) == 0
    assert counter.format_report()[0] == "HLT_BTagIP_Jet180 HLT Trigger path"


def test_cache_resolves_filter_indices(trigger_paths, path_modules, capsys):
    levels = [TriggerLevel("L1", "hltL1sBTagIPJet180"), TriggerLevel("L3", "hltBLifetimeL3Filter")]
    counter = make_counter(levels)
    assert counter.cache_path_description(trigger_paths, path_modules)
    assert counter.path_cached
    assert counter.path_index == 1
    assert [level.filter_index for level in counter.levels] == [0, 3]
    out = capsys.readouterr().out
    assert "filter hltBLifetimeL3Filter has index 3 in path HLT_BTagIP_Jet180" in out


def test_cache_missing_filter_gets_index_zero(trigger_paths, path_modules, capsys):
    counter = make_counter([TriggerLevel("L25", "hltNotThere")])
    assert counter.cache_path_description(trigger_paths, path_modules)
    assert counter.levels[0].filter_index == 0
    assert "filter hltNotThere not found in path HLT_BTagIP_Jet180" in capsys.readouterr().out


def test_cache_unknown_path(path_modules, capsys):
    counter = make_counter([TriggerLevel("L1", "hltL1sBTagIPJet180")], path="HLT_Unknown")
    assert not counter.cache_path_description(["HLT_Jet180"], path_modules)
    assert not counter.path_cached
    assert "cannot find HLT path HLT_Unknown" in capsys.readouterr().out
    assert not counter.analyze(TriggerResult(True, 0))
    assert counter.pass_counts == [0]


def test_analyze_skips_index_beyond_path(trigger_paths, path_modules, btag_levels, capsys):
    counter = make_counter(btag_levels)
    counter.cache_path_description(trigger_paths, path_modules)
    assert not counter.analyze(TriggerResult(False, len(path_modules)))
    assert "module position exceeds path length" in capsys.readouterr().out
    assert counter.pass_counts == [0, 0, 0]
    assert counter.analyze(TriggerResult(False, 2))
    assert counter.pass_counts == [1, 1, 0]


def test_analyze_prints_status_when_verbose(trigger_paths, path_modules, btag_levels, capsys):
    counter = make_counter(btag_levels, verbose=2)
    counter.cache_path_description(trigger_paths, path_modules)
    capsys.readouterr()
    counter.analyze(TriggerResult(False, 1))
    assert "rejected the event at module hltBJet180" in capsys.readouterr().out


def test_level_status(btag_levels):
    counter = make_counter(btag_levels)
    assert counter.level_status(TriggerResult(False, 1)) == ["passed", "failed", "not run"]
    assert counter.level_status(TriggerResult(True, 4)) == ["passed", "passed", "passed"]


def test_format_report(btag_levels):
    counter = make_counter(btag_levels)
    counter.update(True, 0)
    counter.update(False, 1)
    lines = counter.format_report()
    assert lines[0] == "HLT_BTagIP_Jet180 HLT Trigger path"
    assert lines[2] == "HLT_BTagIP_Jet180:" + f"{'events passing L1 seed':<64}" + f"{2:>12}"
    step_line = [l for l in lines if "step efficiency at L2 jet" in l][0]
    assert step_line.endswith("50.00%")
    cumulative_line = [l for l in lines if "cumulative efficiency at L3 b-tag" in l][0]
    assert cumulative_line.endswith("50.00%")
    assert len(lines) == 2 + 3 + 2 + 2


def test_format_percent():
    assert format_percent(np.nan).strip() == "NaN"
    assert format_percent(0.25) == f"{25.:>11.2f}%"


def test_ratio():
    assert ratio(1, 4) == pytest.approx(0.25)
    assert np.isnan(ratio(1, 0))


def test_clopper_pearson_bounds():
    lo, hi = clopper_pearson(5, 10)
    assert 0. < lo < 0.5 < hi < 1.
    assert clopper_pearson(0, 10)[0] == 0.
    assert clopper_pearson(10, 10)[1] == 1.
    assert all(np.isnan(clopper_pearson(0, 0)))


def test_report_intervals_contain_efficiency():
    report = EfficiencyReport([40, 30, 12])
    for i in (1, 2):
        assert report.step_err[i][0] <= report.step[i] <= report.step_err[i][1]
        assert report.cumulative_err[i][0] <= report.cumulative[i] <= report.cumulative_err[i][1]
    assert np.all(np.isnan(report.step_err[0]))


def test_update_returns_levels_passed(btag_levels):
    counter = make_counter(btag_levels)
    assert counter.update(True, 0) == 3
    assert counter.update(False, 2) == 2
    assert counter.update(False, 0) == 0


def test_delta_phi_wraps_around():
    assert delta_phi(3.1, -3.1) == pytest.approx(6.2 - 2. * np.pi)
    assert delta_phi(0.5, 0.2) == pytest.approx(0.3)


def test_closest_jet():
    jet = Jet(100., 0.5, 0.1)
    candidates = [(Jet(50., -1.0, 0.1), 5), (Jet(80., 0.6, 0.2), 4), (Jet(20., 0.5, 0.35), 21)]
    assert closest_jet(jet, candidates, 0.3) == 1
    assert closest_jet(jet, candidates, 0.1) == -1
    assert closest_jet(jet, [], 0.3) == -1


def test_closest_jet_across_phi_boundary():
    jet = Jet(100., 0., 3.1)
    candidates = [(Jet(60., 0., 2.7), 1), (Jet(60., 0., -3.1), 5)]
    assert closest_jet(jet, candidates, 0.3) == 1


def test_jet_plots_groups():
    plots = JetPlots("L2", "L2 jet", {"b": [5], "light": [1, 2, 3, 21]}, {"loose": 2.3, "tight": 9.6}, FakeHistos())
    assert plots.groups() == ["jets", "mc_b", "mc_light", "offline_loose", "offline_tight"]
    assert len(plots.keys()) == 15
    plots.fill(Jet(120., 1.2, -0.4), 5, 5.0)
    plots.fill(Jet(90., -0.3, 2.0))
    h = plots.histos
    assert h.get("jets_et").fills == [(120.,), (90.,)]
    assert h.get("mc_b_eta").fills == [(1.2,)]
    assert h.get("mc_light_phi").fills == []
    assert h.get("offline_loose_et").fills == [(120.,)]
    assert h.get("offline_tight_et").fills == []
    assert plots.njets == 2


def jet_counter(btag_levels, trigger_paths, path_modules):
    counter = make_counter(btag_levels)
    counter.cache_path_description(trigger_paths, path_modules)
    plots = [JetPlots(level.name, level.title, {"b": [5], "c": [4]}, {"medium": 5.3}, FakeHistos()) for level in counter.levels]
    vertex_histos = FakeHistos()
    counter.attach_plots(plots, vertex_histos)
    return counter, plots, vertex_histos


def test_jets_filled_only_for_passed_levels(btag_levels, trigger_paths, path_modules):
    counter, plots, vertex_histos = jet_counter(btag_levels, trigger_paths, path_modules)
    jets = {"L1": [Jet(200., 0.1, 0.1)], "L2": [Jet(190., 0.1, 0.1), Jet(40., 2.0, -2.0)], "L3": [Jet(185., 0.1, 0.1)]}
    partons = [(Jet(180., 0.12, 0.08), -5)]
    tags = [(Jet(190., 0.1, 0.15), 6.1)]
    # stopped at the L3 filter: L1 and L2 passed
    assert counter.analyze(TriggerResult(False, 3, jets=jets, partons=partons, tags=tags, vertex=Vertex(0.01, -0.02, 3.5)))
    assert counter.pass_counts == [1, 1, 0]
    assert plots[0].histos.get("jets_et").fills == [(200.,)]
    assert plots[1].histos.get("jets_et").fills == [(190.,), (40.,)]
    assert plots[1].histos.get("mc_b_et").fills == [(190.,)]
    assert plots[1].histos.get("mc_c_et").fills == []
    assert plots[1].histos.get("offline_medium_eta").fills == [(0.1,)]
    assert plots[2].njets == 0
    assert vertex_histos.get("vertex_z").fills == [(3.5,)]
    assert vertex_histos.get("vertex_x").fills == [(0.01,)]


def test_unmatched_jets_only_fill_all_jets(btag_levels, trigger_paths, path_modules):
    counter, plots, vertex_histos = jet_counter(btag_levels, trigger_paths, path_modules)
    jets = {"L1": [Jet(200., 0.1, 0.1)]}
    partons = [(Jet(180., 1.5, 0.1), 5)]
    tags = [(Jet(190., 0.1, 1.1), 12.)]
    counter.analyze(TriggerResult(True, 0, jets=jets, partons=partons, tags=tags))
    assert plots[0].histos.get("jets_phi").fills == [(0.1,)]
    assert plots[0].histos.get("mc_b_phi").fills == []
    assert plots[0].histos.get("offline_medium_phi").fills == []
    # accepted event without jets at the other levels
    assert plots[1].njets == 0
    assert vertex_histos == {}


def test_counting_without_jet_plots(btag_levels, trigger_paths, path_modules):
    counter = make_counter(btag_levels)
    counter.cache_path_description(trigger_paths, path_modules)
    assert counter.analyze(TriggerResult(True, 0, jets={"L1": [Jet(100., 0., 0.)]}, vertex=Vertex(0., 0., 0.)))
    assert counter.pass_counts == [1, 1, 1]
    assert counter.jet_plots == []
