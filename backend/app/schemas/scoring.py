from pydantic import BaseModel


class ScoringConfigurationIn(BaseModel):
    # No bounds here: the config store reports range and sum errors alike as 400.
    skill_match_weight: float
    experience_weight: float
    interview_weight: float
    test_weight: float
    education_weight: float
