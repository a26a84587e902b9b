import os

import pytest

from fakes import FakeSource, ManualRunner, RecordingView, make_descriptors

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def runner():
    return ManualRunner()


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
def source():
    return FakeSource(make_descriptors(47))
