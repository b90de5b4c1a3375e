"""
Shared setup for the core test suite
"""

import json
from datetime import date
from decimal import Decimal

from django.test import TestCase

from core.models import Customer, FundTransaction, Payment, User


class CollectionFixtures:
    """
    A small hierarchy:

        admin
        └── manager
            ├── agent_one   (customer_a, customer_b)
            └── agent_two   (customer_c)
        other_agent         (customer_d, reports to nobody)
    """

    password = 'Secret123'

    @classmethod
    def make_user(cls, name, mobile, role, reports_to=None, **extra):
        return User.objects.create_user(
            mobile=mobile,
            password=cls.password,
            name=name,
            user_role=role,
            reports_to=reports_to,
            **extra
        )

    @classmethod
    def make_customer(cls, name, mobile, agent, daily_amount='100.00', loan_amount='0.00', **extra):
        extra.setdefault('start_date', date(2024, 1, 1))
        return Customer.objects.create(
            name=name,
            mobile=mobile,
            area='Market Road',
            assigned_agent=agent,
            daily_amount=Decimal(daily_amount),
            loan_amount=Decimal(loan_amount),
            **extra
        )

    @classmethod
    def make_payment(cls, customer, agent, day, amount='100.00', status='paid', **extra):
        return Payment.objects.create(
            customer=customer,
            agent=agent,
            date=day,
            amount=Decimal(amount),
            status=status,
            **extra
        )

    @classmethod
    def fund(cls, amount, kind='credit', created_by=None):
        return FundTransaction.objects.create(
            transaction_type=kind,
            amount=Decimal(amount),
            description='Capital',
            created_by=created_by,
        )

    @classmethod
    def setUpTestData(cls):
        cls.admin = cls.make_user('Asha Admin', '9000000001', 'admin')
        cls.manager = cls.make_user('Manoj Manager', '9000000002', 'manager', reports_to=cls.admin)
        cls.agent_one = cls.make_user('Arun Agent', '9000000003', 'agent', reports_to=cls.manager)
        cls.agent_two = cls.make_user('Bala Agent', '9000000004', 'agent', reports_to=cls.manager)
        cls.other_agent = cls.make_user('Chitra Agent', '9000000005', 'agent')

        cls.customer_a = cls.make_customer('Customer A', '8000000001', cls.agent_one)
        cls.customer_b = cls.make_customer('Customer B', '8000000002', cls.agent_one, daily_amount='50.00')
        cls.customer_c = cls.make_customer('Customer C', '8000000003', cls.agent_two)
        cls.customer_d = cls.make_customer('Customer D', '8000000004', cls.other_agent)


class ApiTestCase(CollectionFixtures, TestCase):

    def post_json(self, url, data=None):
        return self.client.post(url, data=json.dumps(data or {}), content_type='application/json')

    def login_as(self, user):
        self.client.force_login(user)
