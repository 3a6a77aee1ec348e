# START OF FILE: botzin/app/services/funnel_service.py

from typing import Any, Dict, Optional

from botzin.app.services.product_service import ProductMatcher
from botzin.app.services.lead_service import LeadService
from botzin.domain.models import ConversationContext
from botzin.shared.logger import logger

URGENCY_THRESHOLD_SECONDS = 10


class FunnelService:
    """
    Two-question upsell funnel kept on the conversation context:
    step 0 (no product) -> 1 (first question) -> 2 (second question) -> 0 (pitch + lead).
    Any message moves an open funnel forward; there is no early exit.
    """

    def __init__(self, product_matcher: ProductMatcher, lead_service: LeadService,
                 urgency_threshold: float = URGENCY_THRESHOLD_SECONDS, bot_config: Optional[Dict[str, Any]] = None):
        self.product_matcher = product_matcher
        self.lead_service = lead_service
        self._urgency_threshold = urgency_threshold
        self.bot_config = bot_config

    @property
    def urgency_threshold(self) -> float:
        if self.bot_config is not None:
            return self.bot_config.get('urgency_threshold', self._urgency_threshold)
        return self._urgency_threshold

    def advance(self, context: ConversationContext, prompt: str, tone: str, response_delay: float = 0.0,
                preamble: str = "") -> Optional[str]:
        if context.product is None:
            product = (
                self.product_matcher.find_relevant_product(prompt)
                or self.product_matcher.get_time_relevant_product()
            )
            if not product or not self.product_matcher.matches_time_preference(product.time_preference):
                return None
            context.product = product
            context.step = 1
            moment = 'descanso noturno' if self.product_matcher.get_time_preference() == 'night' else 'dia a dia'
            logger.info(f"Funnel opened for {context.user_id} with product '{product.name}'.")
            return (
                f"{preamble}Parece que o senhor(a) poderia se beneficiar de algo para otimizar seu {moment}. "
                f"{product.questions[0]} Gostaria que eu explicasse como isso pode ser resolvido de maneira eficaz?"
            )

        if context.step == 1:
            context.step = 2
            return (
                f"{preamble}Entendo que isso pode estar impactando o senhor(a). {context.product.questions[1]} "
                f"Posso apresentar uma solução que tem ajudado muitos a superar essa questão?"
            )

        if context.step == 2:
            urgency = (
                "Sugiro que considere isso o quanto antes para melhores resultados."
                if response_delay > self.urgency_threshold
                else "Este é um momento oportuno para agir."
            )
            response = (
                f"{preamble}{context.product.campaign_message(tone)}\n\n"
                f"{urgency} Estou à disposição para quaisquer dúvidas ou suporte adicional."
            )
            logger.info(f"Funnel pitched '{context.product.name}' to {context.user_id}.")
            self.lead_service.save_lead(context.user_id, prompt)
            context.step = 0
            context.product = None
            return response

        logger.warning(f"Context of {context.user_id} has product but unexpected step {context.step}. Resetting.")
        context.step = 0
        context.product = None
        return None

# END OF FILE: botzin/app/services/funnel_service.py
