from .user import User
from .position import Position
from .skill import Skill
from .job import Job, JobSkill
from .candidate import Candidate, CandidateQualification, CandidateSkill
from .application import ApplicationStatus, ApplicationStatusHistory, JobApplication
from .interview import Interview, InterviewFeedback
from .scoring import AutomatedScore, ScoringConfiguration
from .notification import Notification

__all__ = [
    "ApplicationStatus",
    "ApplicationStatusHistory",
    "AutomatedScore",
    "Candidate",
    "CandidateQualification",
    "CandidateSkill",
    "Interview",
    "InterviewFeedback",
    "Job",
    "JobApplication",
    "JobSkill",
    "Notification",
    "Position",
    "ScoringConfiguration",
    "Skill",
    "User",
]
