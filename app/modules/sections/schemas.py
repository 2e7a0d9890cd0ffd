from pydantic import BaseModel


class TreatmentStatus(BaseModel):
    has_tagline: bool = False
    has_synopsis: bool = False
    has_characters: bool = False
    has_backstory: bool = False
    has_plot_points: bool = False
    has_scenarios: bool = False


class BusinessStatus(BaseModel):
    has_audience: bool = False
    has_goals: bool = False
    has_user_need: bool = False


class StartedStatus(BaseModel):
    is_started: bool = False


class SectionStatus(BaseModel):
    project_id: str
    treatment: TreatmentStatus = TreatmentStatus()
    business: BusinessStatus = BusinessStatus()
    design: StartedStatus = StartedStatus()
    functional: StartedStatus = StartedStatus()
    technology: StartedStatus = StartedStatus()
    feedback: StartedStatus = StartedStatus()
