"""
ServiceDesk Pricing - Team Cost Engine
Per-member monthly cost (salary x shift multiplier + benefits), team totals,
and a weekly cost breakdown per shift.
"""
import logging

from engines.coverage import schedule_shifts, shift_hours
from engines.errors import require_list, require_mapping

WEEKS_PER_MONTH = 4.33
DEFAULT_FGTS_PCT = 8.0

FIXED_BENEFITS = ('healthInsurance', 'mealVoucher', 'transportVoucher', 'lifeInsurance')
PERCENT_BENEFITS = ('vacation', 'thirteenthSalary', 'fgts', 'inss')


def calculate_team_costs(team, schedules, cache=None):
    require_list(team, 'team'); require_list(schedules, 'schedules')
    cache_input = {'team': team, 'schedules': schedules}
    if cache is not None:
        hit = cache.get_team_costs(cache_input)
        if hit is not None:
            return hit

    breakdown = []
    total_monthly = 0.0; total_hours = 0.0
    for member in team:
        require_mapping(member, 'team[]')
        mc = calculate_member_cost(member, schedules)
        breakdown.append(mc)
        total_monthly += mc['totalCost']
        total_hours += (member.get('workload') or 0) * WEEKS_PER_MONTH

    result = {
        'totalMonthlyCost': total_monthly,
        'totalAnnualCost': total_monthly * 12,
        'costPerHour': total_monthly / total_hours if total_hours > 0 else 0.0,
        'totalMonthlyHours': total_hours,
        'headcount': len(team),
        'breakdown': breakdown,
    }
    if cache is not None:
        cache.cache_team_costs(cache_input, result)
    return result


def calculate_member_cost(member, schedules):
    base_salary = member.get('salary') or 0
    workload = member.get('workload') or 0
    benefits = calculate_benefits(member)
    multiplier = calculate_shift_multiplier(member, schedules)
    adjusted = base_salary * multiplier
    total = adjusted + benefits
    return {
        'memberId': member.get('id'),
        'memberName': member.get('name', ''),
        'role': member.get('role', ''),
        'baseSalary': adjusted,
        'shiftMultiplier': multiplier,
        'benefits': benefits,
        'totalCost': total,
        'hourlyRate': total / (workload * WEEKS_PER_MONTH) if workload > 0 else 0.0,
        'annualCost': total * 12,
    }


def calculate_benefits(member):
    """Fixed allowances + percentages of the base salary + custom benefits.

    FGTS defaults to 8% when the package does not set it. Percentages always
    apply to the base salary, never the shift-adjusted one.
    """
    salary = member.get('salary') or 0
    pkg = require_mapping(member.get('benefits') or {}, 'team[].benefits')
    total = sum(pkg.get(k) or 0 for k in FIXED_BENEFITS)
    for k in PERCENT_BENEFITS:
        pct = pkg.get(k)
        if pct is None and k == 'fgts':
            pct = DEFAULT_FGTS_PCT
        total += salary * (pct or 0) / 100
    for b in require_list(pkg.get('otherBenefits') or [], 'team[].benefits.otherBenefits'):
        require_mapping(b, 'otherBenefits[]')
        if b.get('type') == 'fixed':
            total += b.get('value') or 0
        else:
            total += salary * (b.get('value') or 0) / 100
    return total


def _rate_applies(rate, shift):
    applicable = require_list(rate.get('applicableShifts') or [], 'specialRates[].applicableShifts')
    return not applicable or shift.get('id') in applicable


def effective_multiplier(shift, schedule):
    m = 1.0
    if shift.get('isSpecialShift'):
        m = max(m, shift.get('multiplier') or 1.0)
    for rate in require_list(schedule.get('specialRates') or [], 'schedules[].specialRates'):
        require_mapping(rate, 'specialRates[]')
        if _rate_applies(rate, shift):
            m = max(m, rate.get('multiplier') or 1.0)
    return m


def calculate_shift_multiplier(member, schedules):
    """Highest multiplier from any shift (or rate on a shift) assigning the member."""
    mid = member.get('id')
    multiplier = 1.0
    for schedule in schedules:
        for shift in schedule_shifts(schedule):
            if mid in (shift.get('teamMembers') or []):
                multiplier = max(multiplier, effective_multiplier(shift, schedule))
    return multiplier


def calculate_shift_costs(schedules, team):
    """Weekly cost per schedule -> shift -> assigned member."""
    require_list(schedules, 'schedules'); require_list(team, 'team')
    members = {require_mapping(m, 'team[]').get('id'): m for m in team}
    total = 0.0
    schedule_rows = []
    for schedule in schedules:
        schedule_total = 0.0
        shift_rows = []
        for shift in schedule_shifts(schedule):
            multiplier = effective_multiplier(shift, schedule)
            weekly_hours = shift_hours(shift) * len(shift.get('daysOfWeek') or [])
            member_rows = []; shift_total = 0.0
            for mid in shift.get('teamMembers') or []:
                member = members.get(mid)
                if member is None:
                    logging.warning(f"shift costs: shift '{shift.get('id')}' references unknown member '{mid}'")
                    continue
                workload = member.get('workload') or 0
                base = member.get('costPerHour') or (
                    (member.get('salary') or 0) / (workload * WEEKS_PER_MONTH) if workload > 0 else 0.0)
                weekly = base * multiplier * weekly_hours
                member_rows.append({'memberId': mid, 'memberName': member.get('name', ''),
                                    'baseCost': base, 'multiplier': multiplier,
                                    'multipliedCost': base * multiplier, 'weeklyHours': weekly_hours,
                                    'weeklyCost': weekly})
                shift_total += weekly
            shift_rows.append({'shiftId': shift.get('id'), 'shiftName': shift.get('name', ''),
                               'memberCosts': member_rows, 'totalCost': shift_total})
            schedule_total += shift_total
        schedule_rows.append({'scheduleId': schedule.get('id'), 'scheduleName': schedule.get('name', ''),
                              'shiftCosts': shift_rows, 'totalScheduleCost': schedule_total})
        total += schedule_total
    return {'totalShiftCosts': total, 'shiftBreakdown': schedule_rows}
