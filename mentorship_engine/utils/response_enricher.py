# mentorship_engine/utils/response_enricher.py
from typing import Dict, Any, List
from ..core.intervals import as_utc
from ..models import Mentorship, MentorshipSession
from ..schemas import MentorshipResponse, SessionResponse

class ResponseEnricher:
    @staticmethod
    def enrich_mentorships(mentorships: List[Mentorship]) -> List[Dict[str, Any]]:
        """Enriches mentorships with mentor/mentee names"""
        enriched = []
        for m in mentorships:
            m_dict = MentorshipResponse.model_validate(m).model_dump()
            m_dict['mentor_name'] = m.mentor.full_name if m.mentor else f"Mentor {m.mentor_id}"
            m_dict['mentee_name'] = m.mentee.full_name if m.mentee else f"Mentee {m.mentee_id}"
            enriched.append(m_dict)
        return enriched

    @staticmethod
    def enrich_single_mentorship(mentorship: Mentorship) -> Dict[str, Any]:
        """Enriches a single mentorship"""
        return ResponseEnricher.enrich_mentorships([mentorship])[0]

    @staticmethod
    def enrich_sessions(sessions: List[MentorshipSession]) -> List[Dict[str, Any]]:
        """Serializes sessions with UTC start/end times"""
        enriched = []
        for s in sessions:
            s_dict = SessionResponse.model_validate(s).model_dump()
            s_dict['scheduled_start'] = as_utc(s_dict['scheduled_start'])
            s_dict['scheduled_end'] = as_utc(s_dict['scheduled_end'])
            enriched.append(s_dict)
        return enriched
