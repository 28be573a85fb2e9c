"""
Unit Tests for Batch Policy

Sheet capacity is 4 labels: full sheets print without warning, partial
sheets need confirmation, empty and oversized batches are invalid.
"""
import pytest

from app.exceptions import ValidationError
from app.services.batch_policy import EMPTY_QUEUE_MESSAGE, classify_batch, waste_for


@pytest.mark.unit
class TestClassifyBatch:

    def test_empty_batch_is_invalid(self):
        result = classify_batch(0, 4)

        assert result.is_valid is False
        assert result.can_print_without_warning is False
        assert result.warning_message == EMPTY_QUEUE_MESSAGE
        assert result.effective_size == 0

    def test_full_sheet_prints_without_warning(self):
        result = classify_batch(4, 4)

        assert result.is_valid is True
        assert result.can_print_without_warning is True
        assert result.requires_warning is False
        assert result.warning_message is None
        assert result.wasted_labels == 0

    @pytest.mark.parametrize("size,wasted,pct", [(1, 3, 75), (2, 2, 50), (3, 1, 25)])
    def test_partial_sheet_requires_warning(self, size, wasted, pct):
        result = classify_batch(size, 4)

        assert result.is_valid is True
        assert result.requires_warning is True
        assert result.can_print_without_warning is False
        assert result.wasted_labels == wasted
        assert result.waste_percentage == pct
        assert "Standard batch size is 4 items" in result.warning_message

    def test_single_item_message_is_singular(self):
        result = classify_batch(1, 4)

        assert result.warning_message.startswith("Only 1 item available.")

    def test_oversized_batch_is_clipped_and_invalid(self):
        result = classify_batch(6, 4)

        assert result.is_valid is False
        assert result.effective_size == 4
        assert result.candidate_size == 6

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            classify_batch(-1, 4)

    def test_zero_capacity_rejected(self):
        with pytest.raises(ValidationError):
            classify_batch(1, 0)

    def test_defaults_to_configured_capacity(self):
        result = classify_batch(4)

        assert result.capacity == 4
        assert result.can_print_without_warning is True


@pytest.mark.unit
class TestWasteFor:

    def test_rounds_half_up(self):
        # 1 of 8 wasted = 12.5%
        assert waste_for(7, 8) == (1, 13)

    def test_no_waste_for_full_or_empty(self):
        assert waste_for(4, 4) == (0, 0)
        assert waste_for(0, 4) == (0, 0)
