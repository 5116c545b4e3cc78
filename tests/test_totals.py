from kube_triage.triage.totals import build_totals_row, TOTAL_LABEL
from rowfactory import make_row


def test_totals_sum_only_present_limits():
    rows = [make_row(cpu_m=100, cpu_limit_m=200), make_row(pod='p-2', cpu_m=50, cpu_limit_m=None)]
    total = build_totals_row(rows, 'ns')
    assert total.cpu_m == 150
    assert total.cpu_limit_m == 200
    assert total.cpu_pct == 75.0
    assert total.is_total
    assert total.pod == TOTAL_LABEL


def test_totals_without_any_limit_count_zero_and_leave_percentage_unset():
    rows = [make_row(mem_mi=10), make_row(pod='p-2', mem_mi=30)]
    total = build_totals_row(rows, 'ns')
    assert total.mem_mi == 40
    assert total.mem_limit_mi == 0
    assert total.mem_pct is None


def test_totals_with_zero_limit_sum_leave_percentage_unset():
    total = build_totals_row([make_row(mem_mi=10, mem_limit_mi=0)], 'ns')
    assert total.mem_limit_mi == 0
    assert total.mem_pct is None


def test_totals_sum_restarts_and_ignore_existing_totals():
    rows = [make_row(restarts=2), make_row(pod='p-2', restarts=1)]
    first = build_totals_row(rows, 'ns')
    again = build_totals_row(rows + [first], 'ns')
    assert first.restarts == 3
    assert again == first
