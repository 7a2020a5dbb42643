from chatrelay.pipelines.audio import PipelineTrace, StageOutcome


def test_trace_keeps_insertion_order_and_renders_each_entry():
    trace = PipelineTrace()
    trace.info("receive", "sender=+100")
    trace.ok("fetch", "status=200 bytes=12")
    trace.error("upload", "bucket missing")

    assert [entry.stage for entry in trace.entries] == ["receive", "fetch", "upload"]
    assert trace.render().splitlines() == [
        "[receive] info: sender=+100",
        "[fetch] ok: status=200 bytes=12",
        "[upload] error: bucket missing",
    ]


def test_entries_snapshot_is_not_affected_by_later_appends():
    trace = PipelineTrace()
    trace.ok("fetch")
    snapshot = trace.entries

    trace.ok("stage")

    assert len(snapshot) == 1
    assert len(trace) == 2


def test_errors_are_collected_separately():
    trace = PipelineTrace()
    trace.info("transcribe", "attempt=1 status=IN_PROGRESS")
    trace.info("transcribe", "attempt=2 status=IN_PROGRESS")

    assert not trace.has_errors
    assert trace.stages() == ["transcribe"]

    trace.error("transcribe", "timed out")

    assert trace.has_errors
    assert [entry.outcome for entry in trace.errors] == [StageOutcome.ERROR]
