import pytest

from engines.coverage import detect_gaps, gap_severity, parse_hour, run_coverage, shift_hours
from engines.errors import InvalidInputError
from conftest import make_schedule, make_shift


def test_business_hours_shift(business_schedule):
    result = run_coverage([business_schedule])
    assert result['coveredHours'] == 45
    assert result['coveragePercentage'] == pytest.approx(26.79, abs=0.01)
    gaps = result['gaps']
    # whole Sunday and Saturday, plus before 08h and after 17h on weekdays
    assert {'startTime': '00:00', 'endTime': '24:00'} == {k: gaps[0][k] for k in ('startTime', 'endTime')}
    assert gaps[0]['daysOfWeek'] == [0] and gaps[-1]['daysOfWeek'] == [6]
    weekday = [g for g in gaps if g['daysOfWeek'][0] in range(1, 6)]
    assert len(weekday) == 10
    assert {(g['startTime'], g['endTime']) for g in weekday} == {('00:00', '08:00'), ('17:00', '24:00')}
    assert sum(g['durationHours'] for g in gaps) == 168 - 45


def test_low_coverage_recommendations(business_schedule):
    recs = run_coverage([business_schedule])['recommendations']
    assert recs[0] == 'Coverage too low - add more shifts'
    assert any('weekend' in r for r in recs)
    assert any('night' in r for r in recs)


def test_empty_schedules():
    result = run_coverage([])
    assert result['coveragePercentage'] == 0
    assert result['coveredHours'] == 0
    assert 'Configure at least one work schedule' in result['recommendations']
    assert len(result['gaps']) == 7


def test_full_coverage_has_no_gaps():
    sch = make_schedule([make_shift('all', '00:00', '24:00', range(7), ['m1'])])
    result = run_coverage([sch])
    assert result['coveredHours'] == 168
    assert result['coveragePercentage'] == 100
    assert result['gaps'] == []
    assert result['recommendations'] == ['Good coverage of service hours']


def test_overnight_shift_wraps_to_next_day():
    sch = make_schedule([make_shift('night', '22:00', '06:00', [6], ['m1'])])
    result = run_coverage([sch])
    matrix = result['matrix']
    assert matrix[6][22] and matrix[6][23]
    assert all(matrix[0][h] for h in range(6))
    assert not matrix[0][6]
    assert result['coveredHours'] == 8


def test_overlapping_shifts_count_once_and_stack_staff():
    sch = make_schedule([make_shift('a', '08:00', '12:00', [1], ['m1']),
                         make_shift('b', '10:00', '14:00', [1], ['m2'])], minimum_staff=2)
    result = run_coverage([sch])
    assert result['coveredHours'] == 6
    assert result['staffMatrix'][1][10] == 2
    # 08-10 and 12-14 have a single analyst
    assert result['understaffedHours'] == 4


@pytest.mark.parametrize('start,end,expected', [
    (9, 12, 'high'),
    (17, 24, 'critical'),
    (0, 8, 'medium'),
    (18, 21, 'medium'),
    (19, 21, 'low'),
    (22, 24, 'low'),
])
def test_gap_severity(start, end, expected):
    assert gap_severity(start, end) == expected


def test_gap_detection_is_deterministic(business_schedule):
    assert run_coverage([business_schedule]) == run_coverage([business_schedule])


def test_detect_gaps_on_custom_matrix():
    matrix = [[False] * 24 for _ in range(7)]
    for d in range(7):
        for h in range(24):
            matrix[d][h] = h not in (3, 4, 20)
    gaps = detect_gaps(matrix)
    assert len(gaps) == 14
    assert (gaps[0]['startTime'], gaps[0]['endTime']) == ('03:00', '05:00')
    assert gaps[1]['durationHours'] == 1


def test_shift_hours_and_parse():
    assert shift_hours(make_shift('x', '22:00', '06:00', [1])) == 8
    assert shift_hours(make_shift('x', '08:30', '17:00', [1])) == 9
    assert parse_hour('24:00') == 24
    with pytest.raises(InvalidInputError):
        parse_hour('noon')


def test_invalid_weekday_is_rejected():
    sch = make_schedule([make_shift('x', '08:00', '10:00', [7], ['m1'])])
    with pytest.raises(InvalidInputError):
        run_coverage([sch])


def test_non_list_schedules_rejected():
    with pytest.raises(InvalidInputError):
        run_coverage('weekdays')


@pytest.mark.parametrize('schedules', [
    ['weekdays'],
    [{'id': 'sch-1', 'shifts': ['day']}],
    [{'id': 'sch-1', 'shifts': 'day'}],
    [dict(make_schedule([make_shift('day', '08:00', '17:00', [1])]), coverage=3)],
])
def test_malformed_nested_records_are_input_errors(schedules):
    with pytest.raises(InvalidInputError):
        run_coverage(schedules)


def test_members_and_days_must_be_lists():
    shift = make_shift('day', '08:00', '17:00', [1])
    with pytest.raises(InvalidInputError):
        run_coverage([make_schedule([dict(shift, teamMembers='m1')])])
    with pytest.raises(InvalidInputError):
        run_coverage([make_schedule([dict(shift, daysOfWeek='12345')])])
