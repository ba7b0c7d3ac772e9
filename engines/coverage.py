"""
ServiceDesk Pricing - Coverage Engine
Weekly 7x24 coverage matrix from shift schedules, gap detection with
severity, and threshold-driven staffing recommendations.
"""
from engines.errors import InvalidInputError, require_list, require_mapping

HOURS_PER_WEEK = 168
DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']
WEEKEND_DAYS = (0, 6)
NIGHT_HOURS = tuple(range(22, 24)) + tuple(range(0, 6))


def parse_hour(value):
    try:
        hour = int(str(value).split(':')[0])
    except (TypeError, ValueError):
        raise InvalidInputError(f"invalid time of day '{value}'", {'value': value})
    if not 0 <= hour <= 24:
        raise InvalidInputError(f"hour out of range in '{value}'", {'value': value})
    return hour


def schedule_shifts(schedule):
    """Shifts of one schedule, each checked to be a record with list-valued members and days."""
    require_mapping(schedule, 'schedules[]')
    shifts = require_list(schedule.get('shifts') or [], 'schedules[].shifts')
    for shift in shifts:
        require_mapping(shift, 'shifts[]')
        require_list(shift.get('teamMembers') or [], 'shifts[].teamMembers')
        require_list(shift.get('daysOfWeek') or [], 'shifts[].daysOfWeek')
    return shifts


def shift_hours(shift):
    start = parse_hour(shift.get('startTime', '00:00'))
    end = parse_hour(shift.get('endTime', '00:00'))
    return end - start if end > start else (24 - start) + end


def _shift_slots(shift):
    """(day, hour) slots covered by one shift; overnight shifts spill into the next day."""
    start = parse_hour(shift.get('startTime', '00:00'))
    end = parse_hour(shift.get('endTime', '00:00'))
    for day in shift.get('daysOfWeek') or []:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise InvalidInputError(f"weekday must be 0-6, got {day!r}", {'shiftId': shift.get('id')})
        if end > start:
            for h in range(start, end):
                yield day, h
        else:
            for h in range(start, 24):
                yield day, h
            nxt = (day + 1) % 7
            for h in range(0, end):
                yield nxt, h


def build_staffing_matrix(schedules):
    """7x24 matrix of assigned staff counts."""
    require_list(schedules, 'schedules')
    staff = [[0] * 24 for _ in range(7)]
    covered = [[False] * 24 for _ in range(7)]
    for schedule in schedules:
        for shift in schedule_shifts(schedule):
            n = len(shift.get('teamMembers') or [])
            for day, h in _shift_slots(shift):
                covered[day][h] = True
                staff[day][h] += n
    return covered, staff


def gap_severity(start_hour, end_hour):
    duration = end_hour - start_hour
    if (8 <= start_hour < 18) or (8 < end_hour <= 18):
        return 'critical' if duration > 4 else 'high'
    if (18 <= start_hour < 22) or (18 < end_hour <= 22):
        return 'medium' if duration > 2 else 'low'
    return 'medium' if duration > 6 else 'low'


def _gap(day, start, end):
    return {
        'startTime': f"{start:02d}:00", 'endTime': f"{end:02d}:00",
        'daysOfWeek': [day], 'durationHours': end - start,
        'severity': gap_severity(start, end),
        'suggestedSolution': f"Consider adding coverage on {DAY_NAMES[day]} from {start}h to {end}h",
    }


def detect_gaps(matrix):
    """One gap per contiguous uncovered run, per day, in day/hour order."""
    gaps = []
    for day, row in enumerate(matrix):
        gap_start = None
        for hour, is_covered in enumerate(row):
            if not is_covered and gap_start is None:
                gap_start = hour
            elif is_covered and gap_start is not None:
                gaps.append(_gap(day, gap_start, hour))
                gap_start = None
        if gap_start is not None:
            gaps.append(_gap(day, gap_start, 24))
    return gaps


def _recommendations(schedules, pct, weekend_pct, night_pct, understaffed):
    recs = []
    if not schedules:
        recs.append('Configure at least one work schedule')
    elif pct < 30:
        recs.append('Coverage too low - add more shifts')
    elif pct < 60:
        recs.append('Low coverage - consider expanding service hours')
    elif pct < 80:
        recs.append('Adequate coverage - consider optimizing shift hours')
    else:
        recs.append('Good coverage of service hours')
    if weekend_pct < 50:
        recs.append('Consider improving weekend coverage')
    if night_pct < 30:
        recs.append('Consider adding night coverage (22h-06h)')
    if understaffed:
        recs.append(f'{understaffed} covered hours are below the minimum staff requirement')
    return recs


def run_coverage(schedules):
    covered, staff = build_staffing_matrix(schedules)
    covered_hours = sum(sum(1 for c in row if c) for row in covered)
    pct = min(covered_hours / HOURS_PER_WEEK * 100, 100.0)

    weekend = sum(1 for d in WEEKEND_DAYS for c in covered[d] if c)
    weekend_pct = weekend / 48 * 100
    night = sum(1 for row in covered for h in NIGHT_HOURS if row[h])
    night_pct = night / (len(NIGHT_HOURS) * 7) * 100

    requirements = [require_mapping(s.get('coverage') or {}, 'schedules[].coverage') for s in schedules]
    min_staff = max([r.get('minimumStaff') or 0 for r in requirements] or [0])
    understaffed = sum(1 for d in range(7) for h in range(24)
                       if covered[d][h] and staff[d][h] < min_staff)

    return {
        'totalHours': HOURS_PER_WEEK,
        'coveredHours': covered_hours,
        'coveragePercentage': pct,
        'weekendCoverage': weekend_pct,
        'nightCoverage': night_pct,
        'minimumStaff': min_staff,
        'understaffedHours': understaffed,
        'gaps': detect_gaps(covered),
        'recommendations': _recommendations(schedules, pct, weekend_pct, night_pct, understaffed),
        'matrix': covered,
        'staffMatrix': staff,
    }
