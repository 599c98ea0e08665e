from campaign_pipeline.db.repositories.campaigns import CampaignsRepository
from campaign_pipeline.db.repositories.campaign_pages import CampaignPagesRepository

__all__ = [
    "CampaignsRepository",
    "CampaignPagesRepository",
]
