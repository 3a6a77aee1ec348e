# START OF FILE: botzin/app/services/lead_service.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from botzin.infra.clients.sqlite_repo import SQLiteRepo
from botzin.app.services.product_service import ProductMatcher
from botzin.app.services.tone_service import adjust_tone, NEUTRAL
from botzin.domain.models import Lead
from botzin.shared.state_store import StateStore
from botzin.shared.metrics import metrics
from botzin.shared.logger import logger

FOLLOW_UP_AFTER = timedelta(hours=1)


class LeadService:
    def __init__(self, repo: SQLiteRepo, product_matcher: ProductMatcher, contexts: StateStore):
        self.repo = repo
        self.product_matcher = product_matcher
        self.contexts = contexts
        logger.info("LeadService initialized.")

    def save_lead(self, user_id: str, message: str) -> bool:
        saved = self.repo.save_lead(user_id, message)
        if saved:
            metrics.increment_sales()
        return saved

    def build_recovery_message(self, lead: Lead, tone: str) -> str:
        campaign = self.product_matcher.find_relevant_product(lead.message)
        product = campaign or self.product_matcher.get_time_relevant_product()
        if campaign:
            text = (
                f"{campaign.campaign_message(tone)}\n\n"
                f"Não deixe para depois – milhares já aproveitaram e essa oferta está quase acabando!"
            )
        else:
            text = (
                f'Olá de novo! Você falou sobre "{lead.message}" há um tempinho. '
                f'Tá na hora de resolver isso de vez, né?'
            )
        teaser = product.description.split('.')[0].lower()
        when = 'nessa noite' if self.product_matcher.get_time_preference() == 'night' else 'hoje'
        text += (
            f"\n\nImagine como seria incrível {teaser} {when}! "
            f"Clique aqui AGORA antes que a oferta expire: {product.link}"
        )
        return adjust_tone(text, tone)

    def follow_up_leads(self, client, now: Optional[datetime] = None) -> int:
        """Sends one recovery message per stale lead. Returns how many leads were followed up."""
        now = now or datetime.now(timezone.utc)
        leads = self.repo.get_pending_leads((now - FOLLOW_UP_AFTER).isoformat())
        if leads is None:
            logger.error("Lead follow-up skipped: could not read pending leads.")
            return 0

        followed_up = 0
        for lead in leads:
            try:
                context = self.contexts.get(lead.user_id)
                tone = (context.tone if context else None) or NEUTRAL
                message = self.build_recovery_message(lead, tone)
                if not client.send_text(lead.user_id, message):
                    logger.warning(f"Follow-up for lead {lead.id} not delivered, will retry next cycle.")
                    continue
                self.repo.mark_lead_followed_up(lead.id)
                followed_up += 1
                logger.info(f"Follow-up sent to {lead.user_id} for lead {lead.id}.")
            except Exception as e:
                logger.error(f"Error following up lead {lead.id} of {lead.user_id}: {e}", exc_info=True)
        return followed_up

# END OF FILE: botzin/app/services/lead_service.py
