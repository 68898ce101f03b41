"""
Unit tests for the event log.
"""

from ecosim.logging.event_log import Event, EventLog


class TestEventLog:
    def test_log_records_tick(self):
        log = EventLog()
        log.tick = 7
        event = log.log("birth", "a rabbit was born")
        assert event == Event(7, "birth", "a rabbit was born")
        assert len(log) == 1

    def test_callable_as_sink(self):
        log = EventLog()
        log("death", "x died")
        assert log.last(1)[0].category == "death"

    def test_history_bounded(self):
        log = EventLog(history_size=3)
        for i in range(5):
            log.log("population", str(i))
        assert [e.message for e in log.last(10)] == ["2", "3", "4"]

    def test_last_by_category(self):
        log = EventLog()
        log.log("birth", "b1")
        log.log("death", "d1")
        log.log("birth", "b2")
        assert [e.message for e in log.last(5, category="birth")] == ["b1", "b2"]
        assert log.last(0) == []

    def test_subscribers(self):
        log = EventLog()
        seen = []
        log.subscribe(seen.append)
        log.log("attack", "bite")
        log.unsubscribe(seen.append)
        log.log("attack", "another bite")
        assert [e.message for e in seen] == ["bite"]

    def test_console_echo(self, capsys):
        log = EventLog(console=True)
        log.log("disaster", "earthquake")
        out = capsys.readouterr().out
        assert "disaster" in out
        assert "earthquake" in out

    def test_file_output(self, tmp_path):
        path = tmp_path / "run" / "events.log"
        log = EventLog(file_path=path)
        log.tick = 3
        log.log("courtship", "pairing")
        log.close()
        log.log("courtship", "after close")
        text = path.read_text(encoding="utf-8")
        assert "pairing" in text
        assert "after close" not in text
        assert len(log) == 2

    def test_clear(self):
        log = EventLog()
        log.log("birth", "b")
        log.clear()
        assert len(log) == 0

    def test_format(self):
        assert Event(12, "death", "gone").format() == "[   12] death      gone"
