from draftdesk.controllers.overlay_positioner import OverlayAnchor, OverlayPositioner
from draftdesk.services.annotation_index import Annotation

from conftest import FakeEditorHost


TEXT = "first line\nAI wrote this\nlast line here"


def make_positioner(text: str = TEXT):
    host = FakeEditorHost(text)
    return host, OverlayPositioner(host)


def test_inactive_until_visible_with_annotations():
    host, positioner = make_positioner()
    assert not positioner.is_active
    positioner.set_visible(True)
    assert not positioner.is_active
    assert not positioner.frame_timer.isActive()

    positioner.set_annotations([Annotation("m1", "wrote this")])
    assert positioner.is_active
    assert positioner.frame_timer.isActive()


def test_anchor_is_viewport_relative():
    host, positioner = make_positioner()
    positioner.set_annotations([Annotation("m1", "wrote this")])
    positioner.set_visible(True)
    assert positioner.anchors == [OverlayAnchor("m1", top=20.0, left=24.0, bottom=38.0, right=32.0)]
    assert positioner.anchors[0].button_position == (20.0, 32.0)


def test_missing_text_or_coordinates_drop_the_anchor():
    host, positioner = make_positioner()
    positioner.set_annotations([Annotation("m1", "wrote this"), Annotation("m2", "not in the text")])
    positioner.set_visible(True)
    assert [a.annotation_id for a in positioner.anchors] == ["m1"]

    host.hidden_offsets.add(TEXT.find("wrote this"))
    positioner.tick()
    assert positioner.anchors == []


def test_tick_follows_text_movement_and_signals_only_on_change():
    host, positioner = make_positioner()
    emitted = []
    positioner.anchorsChanged.connect(emitted.append)
    positioner.set_annotations([Annotation("m1", "wrote this")])
    positioner.set_visible(True)
    assert len(emitted) == 1

    positioner.tick()
    assert len(emitted) == 1

    host.text = "\n" + host.text
    positioner.tick()
    assert len(emitted) == 2
    assert positioner.anchors[0].top == 40.0


def test_hiding_stops_the_loop_and_clears_state():
    host, positioner = make_positioner()
    positioner.set_annotations([Annotation("m1", "wrote this")])
    positioner.set_visible(True)
    positioner.handle_pointer_move(30, 25)
    assert positioner.active_annotation_id == "m1"

    positioner.set_visible(False)
    assert not positioner.frame_timer.isActive()
    assert positioner.anchors == []
    assert positioner.active_annotation_id is None

    positioner.tick()
    assert positioner.anchors == []


def test_empty_annotation_list_deactivates():
    host, positioner = make_positioner()
    positioner.set_visible(True)
    positioner.set_annotations([Annotation("m1", "wrote this")])
    assert positioner.frame_timer.isActive()
    positioner.set_annotations([])
    assert not positioner.frame_timer.isActive()
    assert not positioner.is_active


def test_hover_rectangle_bounds():
    host, positioner = make_positioner()
    positioner.set_annotations([Annotation("m1", "wrote this")])
    positioner.set_visible(True)
    # anchor: top 20, bottom 38, left 24; margin 6, epsilon 3, width 500
    assert positioner.hit_test(18, 17) == "m1"
    assert positioner.hit_test(518, 41) == "m1"
    assert positioner.hit_test(17, 25) is None
    assert positioner.hit_test(519, 25) is None
    assert positioner.hit_test(30, 16) is None
    assert positioner.hit_test(30, 42) is None


def test_first_anchor_wins_ties():
    host, positioner = make_positioner("alpha words and beta words")
    positioner.set_annotations([Annotation("b", "beta words"), Annotation("a", "alpha words")])
    positioner.set_visible(True)
    assert positioner.handle_pointer_move(200, 5) == "b"


def test_active_annotation_signal_and_accept():
    host, positioner = make_positioner()
    changes = []
    accepted = []
    positioner.activeAnnotationChanged.connect(changes.append)
    positioner.acceptRequested.connect(accepted.append)
    positioner.set_annotations([Annotation("m1", "wrote this")])
    positioner.set_visible(True)

    assert positioner.accept_active() is False
    positioner.handle_pointer_move(30, 25)
    positioner.handle_pointer_move(31, 25)
    assert positioner.accept_active() is True
    positioner.handle_pointer_move(30, 200)

    assert changes == ["m1", None]
    assert accepted == ["m1"]


def test_custom_hover_settings():
    host = FakeEditorHost(TEXT)
    positioner = OverlayPositioner(host, config={"overlay_hover_width_px": 100, "overlay_frame_interval_ms": 33})
    positioner.set_annotations([Annotation("m1", "wrote this")])
    positioner.set_visible(True)
    assert positioner.frame_timer.interval() == 33
    assert positioner.hit_test(118, 25) == "m1"
    assert positioner.hit_test(119, 25) is None
