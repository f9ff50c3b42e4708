from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Sequence

from ...attendance.model import AttendanceRecord
from ...settings.model import PayrollPolicy
from ..model import PayAdjustments, PayrollFigures


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(
        self,
        records: Sequence[AttendanceRecord],
        *,
        hourly_rate: Decimal,
        policy: PayrollPolicy,
        adjustments: PayAdjustments,
    ) -> PayrollFigures:
        raise NotImplementedError
