from enum import Enum


class CampaignStatusEnum(str, Enum):
    draft = "draft"
    active = "active"
    paused = "paused"
    completed = "completed"


class CampaignPageStatusEnum(str, Enum):
    draft = "draft"
    generated = "generated"
    reviewed = "reviewed"
    published = "published"
