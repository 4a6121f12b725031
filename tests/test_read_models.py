import threading
import time
from datetime import datetime, timezone

from mentorship_engine.core.notifications import ActivityLogHook, LoggingNotificationHook, NotificationDispatcher
from mentorship_engine.dependencies.service_dependencies import (
    get_mentorship_service, get_notification_dispatcher, get_pairing_validator, get_scheduling_service,
    get_statistics_service
)
from mentorship_engine.models import MentorshipStatus
from mentorship_engine.services import MentorshipService, PairingValidator, SchedulingService, StatisticsService
from mentorship_engine.utils.response_enricher import ResponseEnricher


def at(day, hour):
    return datetime(2025, 1, day, hour, 0, tzinfo=timezone.utc)


class TestStatisticsService:
    def test_counts_from_each_side(self, db, clock, mentorship_service, scheduling_service, active_mentorship, mentor, mentee, make_user):
        other_mentee = make_user(role="mentee", gender="female")
        finished = mentorship_service.request_mentorship(mentor.id, other_mentee.id)
        mentorship_service.accept(finished.id, mentor.id)

        done = scheduling_service.request_session(active_mentorship.id, mentor.id, "Kickoff", at(2, 10), 60)
        scheduling_service.request_session(active_mentorship.id, mentor.id, "Follow-up", at(20, 10), 60)
        scheduling_service.request_session(active_mentorship.id, mentee.id, "Pending", at(21, 10), 60)
        clock.now = at(2, 12)
        scheduling_service.complete(done.id, mentee.id)
        mentorship_service.complete(finished.id, other_mentee.id)

        service = StatisticsService(db, clock)
        mentor_stats = service.get_user_statistics(mentor.id)
        mentee_stats = service.get_user_statistics(mentee.id)

        assert (mentor_stats.active_mentorships, mentor_stats.completed_mentorships) == (1, 1)
        assert (mentor_stats.completed_sessions, mentor_stats.upcoming_sessions) == (1, 1)
        assert (mentee_stats.active_mentorships, mentee_stats.completed_mentorships) == (1, 0)
        assert (mentee_stats.completed_sessions, mentee_stats.upcoming_sessions) == (1, 1)

    def test_new_user_has_zero_counts(self, db, clock, mentee):
        stats = StatisticsService(db, clock).get_user_statistics(mentee.id)

        assert stats.model_dump() == {
            "user_id": mentee.id,
            "active_mentorships": 0,
            "completed_mentorships": 0,
            "completed_sessions": 0,
            "upcoming_sessions": 0,
        }


class TestResponseEnricher:
    def test_mentorship_names(self, mentorship_service, active_mentorship, mentor):
        mentorships = mentorship_service.get_mentorships_for_user(mentor.id)

        enriched = ResponseEnricher.enrich_mentorships(mentorships)

        assert enriched[0]["mentor_name"] == "Grace Mentor"
        assert enriched[0]["mentee_name"] == "Ada Mentee"
        assert enriched[0]["status"] == "active"
        assert ResponseEnricher.enrich_single_mentorship(active_mentorship)["id"] == active_mentorship.id

    def test_session_times_are_utc(self, scheduling_service, active_mentorship, mentor):
        scheduling_service.request_session(active_mentorship.id, mentor.id, "Kickoff", at(5, 10), 90)

        enriched = ResponseEnricher.enrich_sessions(scheduling_service.get_sessions_for_mentorship(active_mentorship.id))

        assert enriched[0]["scheduled_start"] == at(5, 10)
        assert enriched[0]["scheduled_end"] == datetime(2025, 1, 5, 11, 30, tzinfo=timezone.utc)
        assert enriched[0]["status"] == "scheduled"


class TestServiceDependencies:
    def test_default_dispatcher_hooks(self):
        dispatcher = get_notification_dispatcher()

        assert dispatcher is get_notification_dispatcher()
        assert [type(h) for h in dispatcher.hooks] == [LoggingNotificationHook, ActivityLogHook]
        assert dispatcher.executor is not None

    def test_factories_wire_services(self, db, recorder):
        dispatcher = NotificationDispatcher([recorder])

        mentorships = get_mentorship_service(db, dispatcher)
        scheduling = get_scheduling_service(db, dispatcher)

        assert isinstance(mentorships, MentorshipService) and mentorships.dispatcher is dispatcher
        assert isinstance(scheduling, SchedulingService) and scheduling.db is db
        assert isinstance(get_pairing_validator(db), PairingValidator)
        assert isinstance(get_statistics_service(db), StatisticsService)
        assert get_mentorship_service(db).dispatcher is get_notification_dispatcher()

    def test_slow_hook_does_not_delay_the_caller(self, db, mentor, mentee, monkeypatch):
        release = threading.Event()
        delivered = threading.Event()

        class SlowMailHook:
            def notify(self, event):
                release.wait(timeout=10)
                delivered.set()

        dispatcher = get_notification_dispatcher()
        monkeypatch.setattr(dispatcher, "hooks", [SlowMailHook()])
        service = get_mentorship_service(db)

        started = time.monotonic()
        try:
            mentorship = service.request_mentorship(mentor.id, mentee.id)
            elapsed = time.monotonic() - started

            assert mentorship.status == MentorshipStatus.PENDING
            assert elapsed < 1.0
            assert not delivered.is_set()
        finally:
            release.set()
        assert delivered.wait(timeout=5)
