from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from config.settings import config
from database.db_manager import filter_messes_by_name, is_unique_violation, parse_price
from database.models import db, DailyVisitorCount, Dish, Mess, Visit


class FakeDriverError(Exception):
    pass


def integrity_error(orig):
    return IntegrityError('INSERT INTO visits ...', {}, orig)


class TestParsePrice:

    @pytest.mark.parametrize('value, expected', [
        ('50', Decimal('50.00')),
        (' 49.5 ', Decimal('49.50')),
        (12, Decimal('12.00')),
        ('0', Decimal('0.00')),
        ('99999999.99', Decimal('99999999.99')),
    ])
    def test_valid(self, value, expected):
        assert parse_price(value) == expected

    @pytest.mark.parametrize('value', ['', 'abc', '-5', None, 'NaN', 'Infinity', True, '1e30', '100000000'])
    def test_invalid(self, value):
        assert parse_price(value) is None


def test_filter_messes_by_name_is_case_insensitive_substring():
    messes = [Mess(name='Annapurna Mess'), Mess(name='Spice Route'), Mess(name='Campus MESS')]

    assert [m.name for m in filter_messes_by_name(messes, 'mess')] == ['Annapurna Mess', 'Campus MESS']
    assert [m.name for m in filter_messes_by_name(messes, 'ROUTE')] == ['Spice Route']
    assert filter_messes_by_name(messes, 'pizza') == []


def test_filter_messes_by_name_empty_query_keeps_all():
    messes = [Mess(name='A'), Mess(name='B')]
    assert filter_messes_by_name(messes, '') == messes
    assert filter_messes_by_name(messes, None) == messes


class TestIsUniqueViolation:

    def test_postgres_sqlstate(self):
        orig = FakeDriverError('duplicate key value violates unique constraint')
        orig.pgcode = '23505'
        assert is_unique_violation(integrity_error(orig))

    def test_mysql_errno(self):
        orig = FakeDriverError(1062, "Duplicate entry '1-1-2024-01-01' for key 'unique_student_mess_date'")
        assert is_unique_violation(integrity_error(orig))

    def test_sqlite_message(self):
        orig = FakeDriverError('UNIQUE constraint failed: visits.student_id, visits.mess_id, visits.date')
        assert is_unique_violation(integrity_error(orig))

    def test_other_integrity_error(self):
        orig = FakeDriverError('NOT NULL constraint failed: visits.mess_id')
        assert not is_unique_violation(integrity_error(orig))


class TestProfiles:

    def test_create_and_authenticate(self, app, db_manager):
        with app.app_context():
            profile = db_manager.create_profile(' Asha@Campus.test ', 'Asha', 'pw', config.ROLE_STUDENT)

            assert profile.email == 'asha@campus.test'
            assert profile.password_hash != 'pw'
            assert db_manager.authenticate('asha@campus.test', 'pw').id == profile.id
            assert db_manager.authenticate('asha@campus.test', 'wrong') is None

    def test_unknown_role_rejected(self, app, db_manager):
        with app.app_context():
            assert db_manager.create_profile('x@campus.test', 'X', 'pw', 'admin') is None

    def test_duplicate_email_returns_none(self, app, db_manager, student_id):
        with app.app_context():
            assert db_manager.create_profile('student@campus.test', 'Again', 'pw', config.ROLE_STUDENT) is None

    def test_role_label(self, app, db_manager, owner_id):
        with app.app_context():
            assert db_manager.find_profile_by_id(owner_id).role_label == 'mess owner'


class TestMess:

    def test_create_default_mess(self, app, db_manager, owner_id):
        with app.app_context():
            mess = db_manager.create_default_mess(owner_id)

            assert mess.name == 'My Mess'
            assert mess.description == 'A great place to eat'
            assert mess.location == 'Campus'
            assert mess.owner_id == owner_id

    def test_create_default_mess_keeps_existing(self, app, db_manager, owner_id, owner_mess_id):
        with app.app_context():
            mess = db_manager.create_default_mess(owner_id)

            assert mess.id == owner_mess_id
            assert Mess.query.filter_by(owner_id=owner_id).count() == 1

    def test_update_mess(self, app, db_manager, owner_id, owner_mess_id):
        with app.app_context():
            mess = db_manager.update_mess(owner_id, name=' Spice Route ', location='Hostel Block A')

            assert mess.name == 'Spice Route'
            assert mess.location == 'Hostel Block A'
            assert mess.description == 'A great place to eat'

    def test_update_mess_rejects_blank_name(self, app, db_manager, owner_id, owner_mess_id):
        with app.app_context():
            assert db_manager.update_mess(owner_id, name='   ') is None
            assert db.session.get(Mess, owner_mess_id).name == 'My Mess'

    def test_update_without_mess(self, app, db_manager, owner_id):
        with app.app_context():
            assert db_manager.update_mess(owner_id, name='Anything') is None


class TestDishes:

    def test_add_update_delete(self, app, db_manager, owner_mess_id):
        with app.app_context():
            dish = db_manager.add_dish(owner_mess_id, ' Dal Tadka ', Decimal('40'))
            assert dish.name == 'Dal Tadka'

            updated = db_manager.update_dish(dish.id, owner_mess_id, 'Dal Makhani', Decimal('55.50'))
            assert updated.name == 'Dal Makhani'
            assert updated.price == Decimal('55.50')

            assert db_manager.delete_dish(dish.id, owner_mess_id) is True
            assert db.session.get(Dish, dish.id) is None

    def test_cannot_touch_other_mess_dish(self, app, db_manager, owner_mess_id, student_id):
        with app.app_context():
            other_owner = db_manager.create_profile('other@campus.test', 'Other', 'pw', config.ROLE_MESS_OWNER)
            other_mess = db_manager.create_default_mess(other_owner.id)
            dish = db_manager.add_dish(other_mess.id, 'Poha', Decimal('25'))

            assert db_manager.update_dish(dish.id, owner_mess_id, 'Hacked', Decimal('1')) is None
            assert db_manager.delete_dish(dish.id, owner_mess_id) is False
            assert db.session.get(Dish, dish.id).name == 'Poha'


class TestVisits:

    def test_record_visit_increments_daily_count(self, app, db_manager, student_id, owner_mess_id):
        with app.app_context():
            status = db_manager.record_visit(student_id, owner_mess_id)

            assert status == config.VISIT_RECORDED
            counter = DailyVisitorCount.query.filter_by(mess_id=owner_mess_id, date=date.today()).one()
            assert counter.visitor_count == 1

    def test_second_visit_same_day_is_conflict(self, app, db_manager, student_id, owner_mess_id):
        with app.app_context():
            db_manager.record_visit(student_id, owner_mess_id)
            status = db_manager.record_visit(student_id, owner_mess_id)

            assert status == config.VISIT_ALREADY_RECORDED
            assert Visit.query.count() == 1
            counter = DailyVisitorCount.query.filter_by(mess_id=owner_mess_id).one()
            assert counter.visitor_count == 1

    def test_visit_on_another_day_is_allowed(self, app, db_manager, student_id, owner_mess_id):
        with app.app_context():
            yesterday = date.today() - timedelta(days=1)
            assert db_manager.record_visit(student_id, owner_mess_id, yesterday) == config.VISIT_RECORDED
            assert db_manager.record_visit(student_id, owner_mess_id) == config.VISIT_RECORDED
            assert Visit.query.count() == 2

    def test_visits_from_different_students_share_counter(self, app, db_manager, student_id, owner_mess_id):
        with app.app_context():
            other = db_manager.create_profile('other@campus.test', 'Other', 'pw', config.ROLE_STUDENT)
            db_manager.record_visit(student_id, owner_mess_id)
            db_manager.record_visit(other.id, owner_mess_id)

            assert db_manager.get_visitor_stats(owner_mess_id)['today_visitors'] == 2

    def test_visit_counted_when_counter_created_concurrently(self, app, db_manager, student_id,
                                                             owner_mess_id, monkeypatch):
        with app.app_context():
            db.session.add(DailyVisitorCount(mess_id=owner_mess_id, date=date.today(), visitor_count=4))
            db.session.commit()

            # The first UPDATE runs before the other request's row is visible
            increment = db_manager._increment_daily_count
            calls = []

            def late_row(mess_id, visit_date):
                calls.append(mess_id)
                if len(calls) == 1:
                    return 0
                return increment(mess_id, visit_date)

            monkeypatch.setattr(db_manager, '_increment_daily_count', late_row)

            assert db_manager.record_visit(student_id, owner_mess_id) == config.VISIT_RECORDED
            assert len(calls) == 2
            assert Visit.query.count() == 1
            counter = DailyVisitorCount.query.filter_by(mess_id=owner_mess_id).one()
            assert counter.visitor_count == 5

    def test_existing_counter_is_updated_in_place(self, app, db_manager, student_id, owner_mess_id):
        with app.app_context():
            db.session.add(DailyVisitorCount(mess_id=owner_mess_id, date=date.today(), visitor_count=9))
            db.session.commit()

            db_manager.record_visit(student_id, owner_mess_id)

            counter = DailyVisitorCount.query.filter_by(mess_id=owner_mess_id).one()
            assert counter.visitor_count == 10

    def test_unknown_mess(self, app, db_manager, student_id):
        with app.app_context():
            assert db_manager.record_visit(student_id, 9999) == config.VISIT_MESS_NOT_FOUND
            assert db_manager.record_visit(student_id, 'abc') == config.VISIT_MESS_NOT_FOUND


class TestStats:

    def test_no_visitors(self, app, db_manager, owner_mess_id):
        with app.app_context():
            assert db_manager.get_visitor_stats(owner_mess_id) == {'today_visitors': 0, 'total_visitors': 0}

    def test_today_and_total(self, app, db_manager, owner_mess_id):
        with app.app_context():
            today = date.today()
            db.session.add_all([
                DailyVisitorCount(mess_id=owner_mess_id, date=today, visitor_count=7),
                DailyVisitorCount(mess_id=owner_mess_id, date=today - timedelta(days=1), visitor_count=10),
                DailyVisitorCount(mess_id=owner_mess_id, date=today - timedelta(days=2), visitor_count=3),
            ])
            db.session.commit()

            assert db_manager.get_visitor_stats(owner_mess_id) == {'today_visitors': 7, 'total_visitors': 20}

    def test_stats_query_failure_returns_zeros(self, app, db_manager, owner_mess_id, monkeypatch):
        class BrokenQuery:
            def filter_by(self, **kwargs):
                raise RuntimeError('daily_visitors unavailable')

        with app.app_context():
            monkeypatch.setattr(DailyVisitorCount, 'query', BrokenQuery())

            assert db_manager.get_visitor_stats(owner_mess_id) == {'today_visitors': 0, 'total_visitors': 0}

    def test_load_owner_dashboard_without_mess(self, app, db_manager, owner_id):
        with app.app_context():
            data = db_manager.load_owner_dashboard(owner_id)

            assert data['mess'] is None
            assert data['dishes'] == []

    def test_load_owner_dashboard_total_price(self, app, db_manager, owner_id, owner_mess_id):
        with app.app_context():
            db_manager.add_dish(owner_mess_id, 'Dal', Decimal('40'))
            db_manager.add_dish(owner_mess_id, 'Roti', Decimal('10.50'))

            data = db_manager.load_owner_dashboard(owner_id)

            assert data['mess'].id == owner_mess_id
            assert [d.name for d in data['dishes']] == ['Dal', 'Roti']
            assert data['total_price'] == Decimal('50.50')
