from __future__ import annotations

from typing import List, Optional

import pytest

from impact_map.models.issue import Issue, Severity
from impact_map.models.map import (
    ClickAction,
    Cluster,
    InteractionState,
    MarkerKind,
    ViewMode,
)
from impact_map.services.map_engine.constants import DEFAULT_BOUNDS
from impact_map.services.map_engine.interaction import MapSession, heat_radius, is_renderable
from tests.conftest import make_issue


def _scenario_a() -> List[Issue]:
    return [
        make_issue("a", 40.0, -74.0, Severity.CRITICAL, description="Flooded underpass"),
        make_issue("b", 40.0001, -74.0001, Severity.LOW),
    ]


def _with_far_issue() -> List[Issue]:
    return _scenario_a() + [make_issue("far", 40.05, -74.05, Severity.MEDIUM)]


def _spread_pair() -> List[Issue]:
    return [
        make_issue("a", 40.0, -74.0, Severity.CRITICAL),
        make_issue("b", 40.004, -74.004, Severity.LOW),
        make_issue("far", 40.05, -74.05),
    ]


class _Recorder:
    def __init__(self) -> None:
        self.issues: List[Optional[Issue]] = []
        self.clusters: List[Optional[Cluster]] = []

    def on_issue(self, issue: Optional[Issue]) -> None:
        self.issues.append(issue)

    def on_cluster(self, cluster: Optional[Cluster]) -> None:
        self.clusters.append(cluster)


def test_initial_state_is_global_no_selection() -> None:
    session = MapSession(_scenario_a())

    assert session.interaction_state == InteractionState.GLOBAL_NO_SELECTION
    assert session.state.mode == ViewMode.GLOBAL
    assert session.state.active_cluster is None
    assert session.state.selected_issue_id is None


def test_empty_session_has_default_bounds_and_no_clusters() -> None:
    session = MapSession()

    assert session.bounds == DEFAULT_BOUNDS
    assert session.clusters() == []
    assert session.markers() == []
    assert session.legend().cluster_count == 0


def test_scenario_a_forms_single_high_priority_cluster() -> None:
    session = MapSession(_scenario_a())

    (cluster,) = session.clusters()

    assert len(cluster.members) == 2
    assert cluster.is_high_priority is True


def test_click_multi_member_cluster_opens_detail_view() -> None:
    recorder = _Recorder()
    session = MapSession(_scenario_a(), on_issue_selected=recorder.on_issue, on_cluster_opened=recorder.on_cluster)
    (cluster,) = session.clusters()

    result = session.click_cluster(cluster)

    assert result.action == ClickAction.CLUSTER_OPENED
    assert [m.id for m in session.active_cluster.members] == ["a", "b"]
    assert session.state.selected_issue_id is None
    assert session.interaction_state == InteractionState.GLOBAL_CLUSTER_ACTIVE
    assert recorder.issues == [None]
    assert recorder.clusters == [cluster]


def test_click_singleton_selects_issue_and_closes_cluster() -> None:
    recorder = _Recorder()
    session = MapSession(_with_far_issue(), on_issue_selected=recorder.on_issue, on_cluster_opened=recorder.on_cluster)
    multi, single = session.clusters()
    session.click_cluster(multi)

    result = session.click_cluster(single)

    assert result.action == ClickAction.ISSUE_SELECTED
    assert result.issue.id == "far"
    assert session.active_cluster is None
    assert session.state.selected_issue_id == "far"
    assert session.selected_issue.id == "far"
    assert session.interaction_state == InteractionState.GLOBAL_ISSUE_SELECTED
    assert recorder.issues[-1].id == "far"
    assert recorder.clusters == [multi, None]


def test_zoom_clears_selection_and_freezes_bounds() -> None:
    session = MapSession(_with_far_issue())
    multi, single = session.clusters()
    session.click_cluster(single)

    state = session.zoom_to_cluster(multi)

    assert state.mode == ViewMode.ZOOMED
    assert state.selected_issue_id is None
    assert state.active_cluster is None
    assert state.interaction_state == InteractionState.ZOOMED_NO_SELECTION
    assert not session.bounds.contains(40.05, -74.05)


def test_zoomed_clusters_are_recomputed_for_new_bounds() -> None:
    session = MapSession(_spread_pair())
    multi, _ = session.clusters()
    assert [m.id for m in multi.members] == ["a", "b"]

    session.zoom_to_cluster(multi)
    clusters = session.clusters()

    # 0.004 degrees apart: merged globally, separate once zoomed
    assert [c.id for c in clusters] == ["a", "b"]
    assert session.legend().visible_issue_count == 2
    assert session.legend().is_zoomed is True


def test_select_in_zoomed_mode() -> None:
    session = MapSession(_spread_pair())
    multi, _ = session.clusters()
    session.zoom_to_cluster(multi)
    target = next(c for c in session.clusters() if c.id == "b")

    session.click_cluster(target)

    assert session.interaction_state == InteractionState.ZOOMED_ISSUE_SELECTED


def test_reset_from_zoom_returns_to_latest_global_bounds() -> None:
    recorder = _Recorder()
    session = MapSession(_with_far_issue(), on_issue_selected=recorder.on_issue)
    multi, _ = session.clusters()
    session.zoom_to_cluster(multi)
    session.set_issues(_with_far_issue() + [make_issue("new", 41.0, -75.0)])

    state = session.reset()

    assert state.mode == ViewMode.GLOBAL
    assert state.bounds == session.viewport.global_bounds
    assert state.bounds.max_lat == pytest.approx(41.02)
    assert state.interaction_state == InteractionState.GLOBAL_NO_SELECTION
    assert recorder.issues[-1] is None


def test_reset_in_global_mode_only_clears_selection() -> None:
    session = MapSession(_with_far_issue())
    _, single = session.clusters()
    session.click_cluster(single)
    bounds = session.bounds

    session.reset()

    assert session.bounds == bounds
    assert session.interaction_state == InteractionState.GLOBAL_NO_SELECTION


def test_zoom_to_cluster_whose_members_vanished_falls_back_to_global() -> None:
    session = MapSession(_with_far_issue())
    multi, _ = session.clusters()
    session.set_issues([make_issue("far", 40.05, -74.05)])

    state = session.zoom_to_cluster(multi)

    assert state.mode == ViewMode.GLOBAL
    assert state.bounds == session.viewport.global_bounds


def test_zoom_uses_surviving_members_only() -> None:
    session = MapSession(_with_far_issue())
    multi, _ = session.clusters()
    session.set_issues([make_issue("a", 40.0, -74.0), make_issue("far", 40.05, -74.05)])

    state = session.zoom_to_cluster(multi)

    assert state.mode == ViewMode.ZOOMED
    assert state.bounds.min_lat == pytest.approx(39.995)
    assert state.bounds.max_lat == pytest.approx(40.005)


def test_select_issue_by_id_and_clear() -> None:
    session = MapSession(_with_far_issue())
    multi, _ = session.clusters()
    session.click_cluster(multi)

    selected = session.select_issue("far")

    assert selected.id == "far"
    assert session.active_cluster is None
    assert session.interaction_state == InteractionState.GLOBAL_ISSUE_SELECTED

    assert session.select_issue(None) is None
    assert session.interaction_state == InteractionState.GLOBAL_NO_SELECTION


def test_select_unknown_issue_clears_selection() -> None:
    session = MapSession(_with_far_issue())
    session.select_issue("far")

    assert session.select_issue("missing") is None
    assert session.state.selected_issue_id is None


def test_markers_carry_display_hints() -> None:
    issues = _with_far_issue() + [make_issue("lone-critical", 40.03, -74.0, Severity.CRITICAL)]
    session = MapSession(issues)
    session.select_issue("far")

    markers = {m.id: m for m in session.markers()}

    assert markers["a"].kind == MarkerKind.MULTI
    assert markers["a"].label == "2"
    assert markers["a"].heat_radius == 8.0
    assert markers["far"].kind == MarkerKind.SELECTED
    assert markers["far"].is_selected is True
    assert markers["far"].heat_radius == 5.0
    assert markers["lone-critical"].kind == MarkerKind.CRITICAL
    assert markers["lone-critical"].label is None


def test_legend_counts() -> None:
    session = MapSession(_with_far_issue())

    legend = session.legend()

    assert legend.cluster_count == 2
    assert legend.high_priority_count == 1
    assert legend.visible_issue_count == 3
    assert legend.is_zoomed is False


@pytest.mark.parametrize(
    "x,y,expected",
    [
        (50.0, 50.0, True),
        (-5.0, 105.0, True),
        (-5.1, 50.0, False),
        (50.0, 105.5, False),
    ],
)
def test_render_guard(x: float, y: float, expected: bool) -> None:
    cluster = Cluster(id="c", x=x, y=y, members=[make_issue("c", 0.0, 0.0)])

    assert is_renderable(cluster) is expected


def test_markers_skip_clusters_outside_soft_margin() -> None:
    session = MapSession(_with_far_issue())
    outside = Cluster(id="ghost", x=120.0, y=50.0, members=[make_issue("ghost", 0.0, 0.0)])
    inside = session.clusters()

    markers = session.markers(inside + [outside])

    assert [m.id for m in markers] == [c.id for c in inside]


def test_heat_radius_grows_with_members() -> None:
    members = [make_issue(str(i), 0.0, 0.0) for i in range(4)]

    assert heat_radius(Cluster(id="0", x=0.0, y=0.0, members=members)) == 10.0
    assert heat_radius(Cluster(id="0", x=0.0, y=0.0, members=members[:1])) == 5.0


def test_snapshot_is_isolated_from_host_list() -> None:
    issues = _scenario_a()
    session = MapSession(issues)

    issues.append(make_issue("late", 40.0002, -74.0002))

    assert len(session.issues) == 2
    assert len(session.clusters()[0].members) == 2


def test_selection_cleared_when_issue_leaves_snapshot() -> None:
    recorder = _Recorder()
    session = MapSession(_with_far_issue(), on_issue_selected=recorder.on_issue)
    session.select_issue("far")

    session.set_issues(_scenario_a())

    assert session.state.selected_issue_id is None
    assert session.interaction_state == InteractionState.GLOBAL_NO_SELECTION
    assert recorder.issues[-1] is None


def test_selection_kept_when_issue_still_present() -> None:
    session = MapSession(_with_far_issue())
    session.select_issue("far")

    session.set_issues(_with_far_issue())

    assert session.selected_issue.id == "far"


def test_duplicate_ids_keep_first_occurrence(caplog: pytest.LogCaptureFixture) -> None:
    issues = [
        make_issue("dup", 40.0, -74.0),
        make_issue("far", 40.05, -74.05),
        make_issue("dup", 40.03, -74.03),
    ]

    with caplog.at_level("WARNING"):
        session = MapSession(issues)

    assert [i.id for i in session.issues] == ["dup", "far"]
    assert session.get_issue("dup").latitude == 40.0
    ids = [c.id for c in session.clusters()]
    assert len(ids) == len(set(ids))
    assert "duplicate issue id dup" in caplog.text


def test_find_cluster_can_skip_unrendered_clusters() -> None:
    session = MapSession(_with_far_issue())
    ghost = Cluster(id="ghost", x=120.0, y=50.0, members=[make_issue("ghost", 0.0, 0.0)])
    session.clusters = lambda: [ghost]

    assert session.find_cluster("ghost") is ghost
    assert session.find_cluster("ghost", renderable_only=True) is None
