# START OF FILE: botzin/app/services/media_service.py

from botzin.infra.clients.evolution_client import EvolutionClient
from botzin.infra.clients.hf_whisper_client import WhisperClient
from botzin.infra.clients.hf_vision_client import VisionClient
from botzin.infra.clients.pdf_client import extract_pdf_text
from botzin.app.services.tone_service import adjust_tone, NEUTRAL
from botzin.domain.models import InboundMessage
from botzin.shared.state_store import StateStore
from botzin.shared.logger import logger

PDF_PREVIEW_CHARS = 500


class MediaService:
    """Turns inbound audio, images and PDFs into a text reply."""

    def __init__(self, client: EvolutionClient, whisper: WhisperClient, vision: VisionClient, contexts: StateStore):
        self.client = client
        self.whisper = whisper
        self.vision = vision
        self.contexts = contexts

    def _transcribe(self, message: InboundMessage) -> str:
        if not self.whisper.is_configured:
            return 'Erro: transcrição de áudio não configurada. Manda um texto que eu te ajudo!'
        audio = self.client.get_media_bytes(message.message_id)
        if audio is None:
            return 'Deu erro ao transcrever o áudio, tenta de novo?'
        return self.whisper.transcribe(audio, message.mimetype or "audio/ogg") or 'Não consegui transcrever, desculpa!'

    def _label(self, message: InboundMessage) -> str:
        if not self.vision.is_configured:
            return 'Erro: análise de imagem não configurada. Manda um texto que eu te ajudo!'
        image = self.client.get_media_bytes(message.message_id)
        if image is None:
            return 'Deu erro ao analisar a imagem, tenta outra?'
        labels = self.vision.label_image(image, message.mimetype or "image/jpeg")
        if labels is None:
            return 'Deu erro ao analisar a imagem, tenta outra?'
        return f"Rótulos detectados: {', '.join(labels)}" if labels else 'Não achei nada na imagem, desculpa!'

    def _pdf_text(self, message: InboundMessage) -> str:
        pdf = self.client.get_media_bytes(message.message_id)
        if pdf is None:
            return 'Deu erro ao pegar o texto do PDF, tenta outro?'
        return extract_pdf_text(pdf) or 'Não consegui extrair texto do PDF, desculpa!'

    def handle(self, message: InboundMessage) -> str:
        context = self.contexts.get(message.sender)
        tone = (context.tone if context else None) or NEUTRAL
        mimetype = message.mimetype or ''
        logger.info(f"Media of type '{message.media_type}' ({mimetype}) received from {message.sender}.")

        if message.media_type == 'audio':
            transcription = self._transcribe(message)
            reply = (
                f"Aqui tá a transcrição do teu áudio: {transcription} 🎙️ Isso tá te incomodando? "
                f"Me diz mais que eu te ajudo a resolver AGORA!"
            )
        elif message.media_type == 'image':
            analysis = self._label(message)
            reply = f"Olha o que achei na tua imagem: {analysis} 🖼️ Tá precisando de algo pra melhorar teu dia? Me conta!"
        elif message.media_type == 'document' and 'pdf' in mimetype:
            text = self._pdf_text(message)
            reply = (
                f"Texto do teu PDF: {text[:PDF_PREVIEW_CHARS]}... 📜 Isso te incomoda ou quer resolver algo "
                f"relacionado? Me diz que eu te mostro o caminho!"
            )
        else:
            reply = (
                'Recebi tua mídia! Por enquanto, só trabalho com áudio, imagens e PDFs. Manda um texto que eu te '
                'ajudo a resolver qualquer coisa AGORA!'
            )
        return adjust_tone(reply, tone)

# END OF FILE: botzin/app/services/media_service.py
