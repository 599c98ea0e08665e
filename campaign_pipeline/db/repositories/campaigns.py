from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from campaign_pipeline.db.models import Campaign


class CampaignsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list(self, subaccount_id: str, limit: int = 50, offset: int = 0) -> List[Campaign]:
        stmt = (
            select(Campaign)
            .where(Campaign.subaccount_id == subaccount_id)
            .order_by(Campaign.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(self.session.scalars(stmt).all())

    def get(self, campaign_id: str) -> Optional[Campaign]:
        return self.session.get(Campaign, campaign_id)

    def create(self, subaccount_id: str, name: str, **fields: Any) -> Campaign:
        campaign = Campaign(subaccount_id=subaccount_id, name=name, **fields)
        self.session.add(campaign)
        self.session.commit()
        self.session.refresh(campaign)
        return campaign

    def update(self, campaign_id: str, **fields: Any) -> Optional[Campaign]:
        campaign = self.get(campaign_id)
        if not campaign:
            return None
        for key, value in fields.items():
            setattr(campaign, key, value)
        self.session.commit()
        self.session.refresh(campaign)
        return campaign
