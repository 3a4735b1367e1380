from cashmere.models import Span
from cashmere.tracker import PromiseStateTracker


def test_drain_reports_assigned_then_unassigned_in_order():
    tracker = PromiseStateTracker()
    tracker.record_unassigned_unawaited(Span(50, 60), "step.sleep")
    tracker.record_assigned("p", Span(10, 20), "step.do")

    pending = tracker.drain()

    assert [(record.span, record.method_name) for record in pending] == [
        (Span(10, 20), "step.do"),
        (Span(50, 60), "step.sleep"),
    ]


def test_awaited_spans_are_not_reported():
    tracker = PromiseStateTracker()
    tracker.record_assigned("p", Span(10, 20), "step.do")
    tracker.record_unassigned_unawaited(Span(30, 40), "step.do")
    tracker.mark_awaited_by_var("p")
    tracker.mark_awaited_by_span(Span(30, 40))

    assert tracker.drain() == []


def test_mark_awaited_by_unknown_variable_is_a_no_op():
    tracker = PromiseStateTracker()
    tracker.record_assigned("p", Span(10, 20), "step.do")
    tracker.mark_awaited_by_var("q")

    assert [record.span for record in tracker.drain()] == [Span(10, 20)]


def test_reassignment_overwrites_only_the_variable_mapping():
    tracker = PromiseStateTracker()
    tracker.record_assigned("p", Span(10, 20), "step.do")
    tracker.record_assigned("p", Span(30, 40), "step.sleep")

    assert tracker.var_to_span == {"p": Span(30, 40)}
    assert tracker.span_to_name[Span(10, 20)] == "step.do"
    assert [record.span for record in tracker.drain()] == [Span(30, 40)]


def test_span_is_reported_once_even_if_recorded_twice():
    tracker = PromiseStateTracker()
    tracker.record_assigned("p", Span(10, 20), "step.do")
    tracker.record_unassigned_unawaited(Span(10, 20), "step.do")

    assert len(tracker.drain()) == 1


def test_missing_method_name_falls_back_to_variable():
    tracker = PromiseStateTracker()
    tracker.var_to_span["task"] = Span(1, 2)

    (record,) = tracker.drain()

    assert record.method_name == "step (var: task)"
