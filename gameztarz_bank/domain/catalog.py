"""Static reference tables: jobs, courses, properties, staking plans, loan offers, rates"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Optional

from gameztarz_bank.domain.exceptions import UnknownCatalogItemError


@dataclass(frozen=True)
class Job:
    id: str
    title: str
    salary: float  # Annual, USD
    required_course_id: Optional[str]


@dataclass(frozen=True)
class Course:
    id: str
    title: str
    cost: float
    duration_days: int


@dataclass(frozen=True)
class Property:
    id: str
    name: str
    buy_price: float
    rent_price: float  # Annual
    maintenance_fee: float  # Monthly


@dataclass(frozen=True)
class StakingPlan:
    id: str
    name: str
    duration: timedelta
    reward: float  # Fraction of principal


@dataclass(frozen=True)
class LoanOffer:
    id: str
    name: str
    amount: float
    interest_rate: float
    term_months: int


COURSES: Dict[str, Course] = {
    c.id: c
    for c in [
        Course("edu1", "High School Diploma", 5_000, 365 * 4),
        Course("edu2", "Bachelor's in Business", 40_000, 365 * 4),
        Course("edu3", "Bachelor's in CS", 55_000, 365 * 4),
        Course("edu4", "Medical Doctorate", 300_000, 365 * 8),
        Course("edu5", "Graphic Design Certificate", 10_000, 365),
        Course("edu6", "Accounting Certification (CPA)", 15_000, 365 * 2),
    ]
}

JOBS: Dict[str, Job] = {
    j.id: j
    for j in [
        Job("job1", "Software Engineer", 120_000, "edu3"),
        Job("job2", "Graphic Designer", 75_000, "edu5"),
        Job("job3", "Doctor", 250_000, "edu4"),
        Job("job4", "Teacher", 60_000, "edu1"),
        Job("job5", "Marketing Manager", 95_000, "edu2"),
        Job("job6", "Chef", 80_000, "edu1"),
        Job("job7", "Accountant", 85_000, "edu6"),
        Job("job8", "Data Scientist", 150_000, "edu3"),
    ]
}

PROPERTIES: Dict[str, Property] = {
    p.id: p
    for p in [
        Property("prop1", "Modern Downtown Loft", 650_000, 3_500, 550),
        Property("prop2", "Suburban Family Home", 450_000, 2_800, 500),
        Property("prop3", "Luxury Beachfront Villa", 2_500_000, 15_000, 3_000),
        Property("prop4", "Cozy Studio Apartment", 180_000, 1_800, 300),
        Property("prop5", "Mountain View Cabin", 320_000, 2_200, 400),
        Property("prop6", "Chic Urban Condo", 780_000, 4_200, 600),
        Property("prop7", "Historic Townhouse", 1_200_000, 6_500, 800),
        Property("prop8", "Desert Oasis", 850_000, 5_000, 700),
    ]
}

STAKING_PLANS: Dict[str, StakingPlan] = {
    s.id: s
    for s in [
        StakingPlan("plan_1", "1 Minute - 5% Reward", timedelta(minutes=1), 0.05),
        StakingPlan("plan_2", "2 Minutes - 10% Reward", timedelta(minutes=2), 0.10),
        StakingPlan("plan_3", "5 Minutes - 20% Reward", timedelta(minutes=5), 0.20),
        StakingPlan("plan_4", "10 Minutes - 40% Reward", timedelta(minutes=10), 0.40),
        StakingPlan("plan_5", "20 Minutes - 60% Reward", timedelta(minutes=20), 0.60),
        StakingPlan("plan_6", "25 Minutes - 75% Reward", timedelta(minutes=25), 0.75),
        StakingPlan("plan_7", "30 Minutes - 85% Reward", timedelta(minutes=30), 0.85),
        StakingPlan("plan_8", "45 Minutes - 100% Reward", timedelta(minutes=45), 1.00),
    ]
}

LOAN_OFFERS: Dict[str, LoanOffer] = {
    o.id: o
    for o in [
        LoanOffer("loan1", "Personal Loan", 5_000, 0.10, 12),
        LoanOffer("loan2", "Car Loan", 20_000, 0.08, 48),
        LoanOffer("loan3", "Mortgage Loan", 250_000, 0.05, 360),
        LoanOffer("loan4", "Student Loan", 50_000, 0.06, 120),
    ]
}

# USD value of one unit of each currency
CONVERSION_RATES: Dict[str, float] = {
    "USD": 1.0,
    "NGN": 1 / 1500,
    "EUR": 1.08,
    "BTC": 65_000.0,
    "ETH": 3_500.0,
    "LTC": 80.0,
    "XRP": 0.5,
    "DOGE": 0.15,
    "GMZ": 0.015,
}


def lookup(table: Dict[str, object], item_id: str, kind: str):
    """Fetch a catalog entry or raise UnknownCatalogItemError"""
    try:
        return table[item_id]
    except KeyError:
        raise UnknownCatalogItemError(f"Unknown {kind}: {item_id}") from None
