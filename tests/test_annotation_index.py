from draftdesk.services.annotation_index import (
    Annotation,
    AnnotationIndex,
    MarkRange,
    is_trackable,
    rebuild_mark_ranges,
)


DOC = "AI wrote this sentence. AI wrote this too."


def test_single_annotation_marks_first_occurrence():
    ranges = rebuild_mark_ranges(DOC, [Annotation("m1", "wrote this sentence")])
    assert ranges == [MarkRange(start=3, end=22, annotation_id="m1")]


def test_every_occurrence_is_marked():
    ranges = rebuild_mark_ranges(DOC, [Annotation("m1", "wrote this")])
    assert [(r.start, r.end) for r in ranges] == [(3, 13), (27, 37)]


def test_short_and_empty_texts_are_ignored():
    ranges = rebuild_mark_ranges("the cat sat", [Annotation("a", "cat"), Annotation("b", "")])
    assert ranges == []
    assert is_trackable("abcd")
    assert not is_trackable("abc")


def test_earlier_annotation_wins_overlap():
    annotations = [Annotation("first", "wrote this sentence"), Annotation("second", "this sentence. AI")]
    ranges = rebuild_mark_ranges(DOC, annotations)
    assert [r.annotation_id for r in ranges] == ["first"]


def test_same_start_prefers_list_order():
    annotations = [Annotation("short", "wrote this"), Annotation("long", "wrote this sentence")]
    ranges = rebuild_mark_ranges(DOC, annotations)
    assert ranges[0] == MarkRange(start=3, end=13, annotation_id="short")
    assert all(r.annotation_id == "short" for r in ranges)


def test_ranges_are_sorted_and_disjoint():
    text = "alpha beta gamma alpha delta beta gamma"
    annotations = [Annotation("g", "gamma"), Annotation("a", "alpha beta"), Annotation("b", "beta gamma")]
    ranges = rebuild_mark_ranges(text, annotations)
    starts = [r.start for r in ranges]
    assert starts == sorted(starts)
    for left, right in zip(ranges, ranges[1:]):
        assert left.end <= right.start


def test_rebuild_is_idempotent():
    annotations = [Annotation("x", "wrote this"), Annotation("y", "this too.")]
    assert rebuild_mark_ranges(DOC, annotations) == rebuild_mark_ranges(DOC, annotations)


def test_index_tracks_visible_ids():
    index = AnnotationIndex()
    index.set_annotations([Annotation("m1", "wrote this"), Annotation("m2", "not present")], DOC)
    assert index.visible_annotation_ids() == ["m1"]
    assert len(index.ranges_for("m1")) == 2

    index.rebuild("nothing left")
    assert index.ranges == []
    assert [a.id for a in index.annotations] == ["m1", "m2"]


def test_annotation_from_mapping():
    assert Annotation.from_mapping({"id": "m1", "text": "hello"}) == Annotation("m1", "hello")
    assert Annotation.from_mapping(None) == Annotation("", "")
