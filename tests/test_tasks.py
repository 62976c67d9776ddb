"""Tests for mdbuilder.web.tasks."""

from unittest.mock import Mock, patch

from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from mdbuilder.core.exceptions import ContentError
from mdbuilder.web.tasks import ContentEventHandler, ContentWatcher, RebuildCoordinator


class FakeBuilder:
    def __init__(self):
        self.builds = 0
        self.invalidations = 0
        self.on_build = None
        self.error = None

    def build(self):
        self.builds += 1
        if self.on_build is not None:
            self.on_build()
        if self.error is not None:
            raise self.error

    def invalidate_templates(self):
        self.invalidations += 1


class TestRebuildCoordinator:
    def test_runs_one_build(self):
        builder = FakeBuilder()
        coordinator = RebuildCoordinator(builder, run_async=False)

        assert coordinator.request("manual") is True
        assert builder.builds == 1
        status = coordinator.status()
        assert status["state"] == "completed"
        assert status["build_count"] == 1

    def test_overlapping_requests_coalesce_into_one_rebuild(self):
        builder = FakeBuilder()
        coordinator = RebuildCoordinator(builder, run_async=False)
        results = []

        def trigger_during_first_build():
            if builder.builds == 1:
                results.extend(coordinator.request("change") for _ in range(3))

        builder.on_build = trigger_during_first_build
        coordinator.request("initial")

        assert results == [False, False, False]
        assert builder.builds == 2
        assert coordinator.status()["coalesced_count"] == 3
        assert coordinator.status()["pending"] is False

    def test_template_change_invalidates_before_build(self):
        builder = FakeBuilder()
        coordinator = RebuildCoordinator(builder, run_async=False)

        coordinator.request("template", invalidate_templates=True)
        coordinator.request("content")
        assert builder.invalidations == 1
        assert builder.builds == 2

    def test_failed_build_is_reported(self):
        builder = FakeBuilder()
        builder.error = ContentError("Template is missing </head> tag")
        coordinator = RebuildCoordinator(builder, run_async=False)

        coordinator.request("manual")
        status = coordinator.status()
        assert status["state"] == "failed"
        assert "missing </head>" in status["error"]

        builder.error = None
        coordinator.request("manual")
        assert coordinator.status()["state"] == "completed"
        assert coordinator.status()["error"] is None

    def test_background_build(self):
        builder = FakeBuilder()
        coordinator = RebuildCoordinator(builder)

        assert coordinator.request("manual") is True
        assert coordinator.wait(timeout=5)
        assert builder.builds == 1


class TestContentEventHandler:
    def test_markdown_change_triggers_rebuild(self, make_config, site_dir):
        coordinator = Mock()
        handler = ContentEventHandler(make_config(), coordinator, debounce=0)
        path = (site_dir / "content" / "a.md").resolve()

        handler.dispatch(FileModifiedEvent(str(path)))
        coordinator.request.assert_called_once_with(reason=str(path), invalidate_templates=False)

    def test_added_and_removed_files(self, make_config, site_dir):
        coordinator = Mock()
        handler = ContentEventHandler(make_config(), coordinator, debounce=0)

        handler.dispatch(FileCreatedEvent(str(site_dir / "content" / "sub" / "b.md")))
        handler.dispatch(FileDeletedEvent(str(site_dir / "content" / "a.md")))
        assert coordinator.request.call_count == 2

    def test_rename_into_markdown_counts(self, make_config, site_dir):
        coordinator = Mock()
        handler = ContentEventHandler(make_config(), coordinator, debounce=0)
        content = site_dir / "content"

        handler.dispatch(FileMovedEvent(str(content / "draft.tmp"), str(content / "draft.md")))
        assert coordinator.request.call_count == 1

    def test_other_files_are_ignored(self, make_config, site_dir, tmp_path):
        coordinator = Mock()
        handler = ContentEventHandler(make_config(), coordinator, debounce=0)

        handler.dispatch(FileModifiedEvent(str(site_dir / "content" / "notes.txt")))
        handler.dispatch(FileModifiedEvent(str(site_dir / "templates" / "other.html")))
        handler.dispatch(FileModifiedEvent(str(tmp_path / "outside.md")))
        handler.dispatch(DirModifiedEvent(str(site_dir / "content")))
        coordinator.request.assert_not_called()

    def test_template_change_invalidates(self, make_config, site_dir):
        coordinator = Mock()
        handler = ContentEventHandler(make_config(), coordinator, debounce=0)

        handler.dispatch(FileModifiedEvent(str(site_dir / "templates" / "page.html")))
        assert coordinator.request.call_args.kwargs["invalidate_templates"] is True

    def test_burst_of_events_is_one_request(self, make_config, site_dir):
        coordinator = Mock()
        handler = ContentEventHandler(make_config(), coordinator, debounce=60)
        content = site_dir / "content"

        handler.dispatch(FileModifiedEvent(str(content / "a.md")))
        handler.dispatch(FileModifiedEvent(str(site_dir / "templates" / "page.html")))
        handler.dispatch(FileModifiedEvent(str(content / "b.md")))
        coordinator.request.assert_not_called()

        assert handler.flush() is True
        handler.cancel()
        coordinator.request.assert_called_once()
        assert coordinator.request.call_args.kwargs["invalidate_templates"] is True
        assert handler.flush() is False


class TestContentWatcher:
    def test_schedules_content_and_template_directories(self, make_config, site_dir):
        with patch("mdbuilder.web.tasks.Observer") as observer_cls:
            watcher = ContentWatcher(make_config(), Mock())
            watcher.start()
            observer = observer_cls.return_value

            scheduled = [(call.args[1], call.kwargs["recursive"]) for call in observer.schedule.call_args_list]
            assert scheduled == [
                (str((site_dir / "content").resolve()), True),
                (str((site_dir / "templates").resolve()), False),
            ]
            observer.start.assert_called_once()

            watcher.stop()
            observer.stop.assert_called_once()
            observer.join.assert_called_once()

    def test_missing_content_directory_is_skipped(self, make_config, site_dir):
        config = make_config()
        (site_dir / "content").rename(site_dir / "moved")
        assert ContentWatcher(config, Mock()).watch_paths() == [(site_dir / "templates").resolve()]
