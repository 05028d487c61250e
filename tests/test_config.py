import pytest
from pydantic import ValidationError

from lesson_core.config import Settings


def test_batch_size_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(mcq_batch_size=0)
    with pytest.raises(ValidationError):
        Settings(mcq_batch_size=-5)


def test_default_batch_size_from_environment():
    assert Settings().mcq_batch_size == 50
    assert Settings(mcq_batch_size=1).mcq_batch_size == 1
