"""
Unit tests for the capture -> prepare -> preview -> upload session.

Covers state transitions, the one-operation-at-a-time guards and the
safety timer that unsticks the session.
"""

import threading
import time
from datetime import datetime
from unittest.mock import Mock

import pytest

from adapters.scheduling.safety_timer import ThreadingSafetyTimer
from application.dto.image_dto import ImageDTO
from application.usecase.capture_and_upload import UploadSession
from domain.errors import GalleryApiError, GalleryError, ImagePreparationError, InvalidUploadError
from domain.model.image_asset import ImageAsset
from domain.model.upload_state import UploadState
from ports.scheduler import TimerPort

RAW = ImageAsset(uri="file:///photos/raw.jpg", file_size=4_000_000, width=4000, height=3000)
PREPARED = ImageAsset(uri="file:///tmp/prepared.jpg", file_size=180_000, width=1200, height=900)


class FakeTimer(TimerPort):
    def __init__(self, seconds, callback):
        self.seconds = seconds
        self.callback = callback
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.callback()


@pytest.fixture
def timers():
    return []


@pytest.fixture
def client():
    client = Mock()
    client.upload_image.return_value = ImageDTO(id=42, name="Image", folder_id=7)
    return client


@pytest.fixture
def preparation():
    preparation = Mock()
    preparation.prepare.return_value = PREPARED
    return preparation


@pytest.fixture
def session(client, preparation, timers):
    def factory(seconds, callback):
        timer = FakeTimer(seconds, callback)
        timers.append(timer)
        return timer

    return UploadSession(
        client,
        preparation,
        folder_id=7,
        timer_factory=factory,
        safety_timeout=5,
        clock=lambda: datetime(2024, 5, 1, 10, 30, 0),
    )


class TestAcquire:

    def test_pick_prepares_and_previews(self, session, preparation, timers):
        result = session.pick(lambda: RAW)

        assert result == PREPARED
        assert session.state is UploadState.PREVIEWING
        assert session.asset == PREPARED
        preparation.prepare.assert_called_once_with(RAW)
        # um timer para PICKING e outro para PROCESSING, ambos desarmados
        assert [t.seconds for t in timers] == [5, 5]
        assert all(t.started and t.cancelled for t in timers)

    def test_cancelled_capture_returns_to_idle(self, session, preparation):
        assert session.capture(lambda: None) is None
        assert session.state is UploadState.IDLE
        preparation.prepare.assert_not_called()

    def test_camera_failure_is_reported(self, session):
        def broken_camera():
            raise RuntimeError("camera unavailable")

        with pytest.raises(GalleryError) as exc_info:
            session.capture(broken_camera)

        assert exc_info.value.message == "Failed to take picture: camera unavailable"
        assert session.state is UploadState.IDLE

    def test_preparation_failure_aborts_flow(self, session, preparation):
        preparation.prepare.side_effect = ImagePreparationError("Failed to process image")

        with pytest.raises(ImagePreparationError):
            session.pick(lambda: RAW)

        assert session.state is UploadState.IDLE
        assert session.asset is None

    def test_capture_while_capturing_is_noop(self, session):
        inner_source = Mock(return_value=RAW)
        nested = {}

        def camera():
            nested["result"] = session.pick(inner_source)
            return RAW

        session.capture(camera)

        assert nested["result"] is None
        inner_source.assert_not_called()
        assert session.state is UploadState.PREVIEWING

    def test_capture_while_previewing_is_ignored(self, session):
        session.pick(lambda: RAW)
        source = Mock(return_value=RAW)

        assert session.capture(source) is None
        source.assert_not_called()
        assert session.state is UploadState.PREVIEWING

    def test_discard_clears_preview(self, session):
        session.pick(lambda: RAW)
        session.discard()

        assert session.state is UploadState.IDLE
        assert session.asset is None


class TestUpload:

    def test_upload_success_finishes_session(self, session, client):
        session.pick(lambda: RAW)

        image = session.upload()

        assert image.id == 42
        assert session.state is UploadState.DONE
        assert session.uploaded == image
        client.upload_image.assert_called_once_with(PREPARED, 7, "Image 2024-05-01 10:30:00")

    def test_upload_uses_given_name(self, session, client):
        session.pick(lambda: RAW)
        session.upload("Beach")

        assert client.upload_image.call_args.args[2] == "Beach"

    def test_upload_failure_returns_to_preview(self, session, client):
        client.upload_image.side_effect = GalleryApiError("The image field is required.", 422)
        session.pick(lambda: RAW)

        with pytest.raises(GalleryError) as exc_info:
            session.upload()

        assert exc_info.value.message == "Failed to upload image: The image field is required."
        assert session.state is UploadState.PREVIEWING
        assert session.asset == PREPARED

    def test_unexpected_upload_failure_allows_retry(self, session, client):
        client.upload_image.side_effect = [FileNotFoundError("prepared.jpg"), ImageDTO(id=9, name="Image")]
        session.pick(lambda: RAW)

        with pytest.raises(FileNotFoundError):
            session.upload()
        assert session.state is UploadState.PREVIEWING
        assert session.asset == PREPARED

        assert session.upload().id == 9
        assert session.state is UploadState.DONE

    def test_upload_without_image(self, session, client):
        with pytest.raises(InvalidUploadError, match="No image to upload"):
            session.upload()
        client.upload_image.assert_not_called()

    def test_upload_without_folder(self, client, preparation):
        session = UploadSession(client, preparation, folder_id=None, timer_factory=FakeTimer)
        session.pick(lambda: RAW)

        with pytest.raises(InvalidUploadError, match="Folder ID is missing"):
            session.upload()
        assert session.state is UploadState.PREVIEWING

    def test_concurrent_upload_is_noop(self, session, client):
        entered = threading.Event()
        release = threading.Event()
        results = {}

        def slow_upload(asset, folder_id, name):
            entered.set()
            release.wait(timeout=5)
            return ImageDTO(id=1, name=name)

        client.upload_image.side_effect = slow_upload
        session.pick(lambda: RAW)

        worker = threading.Thread(target=lambda: results.setdefault("first", session.upload()))
        worker.start()
        assert entered.wait(timeout=5)

        second = session.upload()
        release.set()
        worker.join(timeout=5)

        assert second is None
        assert client.upload_image.call_count == 1
        assert results["first"].id == 1
        assert session.state is UploadState.DONE


class TestSafetyTimer:

    def test_timeout_resets_stuck_upload(self, session, client, timers):
        entered = threading.Event()
        release = threading.Event()

        def slow_upload(asset, folder_id, name):
            entered.set()
            release.wait(timeout=5)
            return ImageDTO(id=9, name=name)

        client.upload_image.side_effect = slow_upload
        session.pick(lambda: RAW)

        results = {}
        worker = threading.Thread(target=lambda: results.setdefault("image", session.upload()))
        worker.start()
        assert entered.wait(timeout=5)

        timers[-1].fire()
        assert session.state is UploadState.IDLE

        release.set()
        worker.join(timeout=5)

        # a requisição não é abortada, mas a conclusão tardia não muda o estado
        assert results["image"].id == 9
        assert session.state is UploadState.IDLE
        assert session.uploaded is None

    def test_stale_timer_has_no_effect(self, session, timers):
        session.pick(lambda: RAW)

        timers[0].callback()

        assert session.state is UploadState.PREVIEWING

    def test_real_timer_unsticks_capture(self, client, preparation):
        session = UploadSession(
            client, preparation, folder_id=7,
            timer_factory=ThreadingSafetyTimer, safety_timeout=0.05,
        )
        entered = threading.Event()
        release = threading.Event()
        results = {}

        def stuck_camera():
            entered.set()
            release.wait(timeout=5)
            return RAW

        worker = threading.Thread(target=lambda: results.setdefault("asset", session.capture(stuck_camera)))
        worker.start()
        assert entered.wait(timeout=5)

        deadline = time.monotonic() + 5
        while session.state is not UploadState.IDLE and time.monotonic() < deadline:
            time.sleep(0.01)
        assert session.state is UploadState.IDLE

        release.set()
        worker.join(timeout=5)
        assert results["asset"] is None
        assert session.state is UploadState.IDLE
        preparation.prepare.assert_not_called()
