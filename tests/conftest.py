import pytest

from budget_forecast.domain.models import BudgetPerformance
from budget_forecast.io.performance import InMemoryPerformanceSource


@pytest.fixture
def source() -> InMemoryPerformanceSource:
    history = [
        BudgetPerformance(period="2023-01", actual_amount=100, budget_id="b1"),
        BudgetPerformance(period="2023-02", actual_amount=110, budget_id="b1"),
        BudgetPerformance(period="2023-03", actual_amount=120, budget_id="b1"),
    ]
    return InMemoryPerformanceSource({"b1": history})
