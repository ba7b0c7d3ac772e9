"""Shared fixtures for the pricing engine tests."""
import pytest

from engines.cache import ServiceDeskCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_member(mid, salary=3000.0, workload=40, **benefits):
    return {'id': mid, 'name': f'Analyst {mid}', 'role': 'N1 Analyst',
            'salary': salary, 'workload': workload, 'benefits': benefits,
            'skills': ['ITIL'], 'certifications': []}


def make_shift(sid, start, end, days, members=(), special=False, multiplier=1.0):
    return {'id': sid, 'name': sid, 'startTime': start, 'endTime': end,
            'daysOfWeek': list(days), 'teamMembers': list(members),
            'isSpecialShift': special, 'multiplier': multiplier}


def make_schedule(shifts, special_rates=(), minimum_staff=1):
    return {'id': 'sch-1', 'name': 'Main', 'shifts': list(shifts),
            'specialRates': list(special_rates),
            'coverage': {'minimumStaff': minimum_staff, 'preferredStaff': minimum_staff + 1}}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ServiceDeskCache(max_size=50, team_ttl=600, tax_ttl=600, roi_ttl=300, clock=clock)


@pytest.fixture
def business_schedule():
    return make_schedule([make_shift('day', '08:00', '17:00', range(1, 6), ['m1', 'm2'])])


@pytest.fixture
def team():
    return [
        make_member('m1', salary=3000.0, healthInsurance=200.0, mealVoucher=500.0,
                    vacation=10.0, thirteenthSalary=10.0, fgts=8.0, inss=20.0),
        make_member('m2', salary=4000.0, workload=30),
    ]


@pytest.fixture
def tax_config():
    return {'region': 'SP', 'taxRegime': 'lucro_presumido',
            'icms': 18.0, 'pis': 1.65, 'cofins': 7.6, 'iss': 5.0, 'ir': 15.0, 'csll': 11.0,
            'customTaxes': []}


@pytest.fixture
def snapshot(team, business_schedule, tax_config):
    return {
        'project': {'name': 'Service Desk Contract',
                    'contractPeriod': {'durationMonths': 12, 'startDate': '2025-01-01'}},
        'team': team,
        'schedules': [business_schedule],
        'taxes': tax_config,
        'variables': {'scenarios': []},
        'otherCosts': [
            {'id': 'c1', 'name': 'Servers', 'category': 'infrastructure', 'value': 1000.0, 'frequency': 'monthly'},
            {'id': 'c2', 'name': 'ITSM licenses', 'category': 'licenses', 'value': 500.0, 'frequency': 'monthly'},
        ],
        'margin': {'type': 'percentage', 'value': 20.0, 'minimumMargin': 10.0,
                   'targetMargin': 20.0, 'maximumMargin': 30.0},
        'budget': {},
    }
