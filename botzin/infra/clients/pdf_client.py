# START OF FILE: botzin/infra/clients/pdf_client.py

import io
from typing import Optional

from pypdf import PdfReader

from botzin.shared.logger import logger


def extract_pdf_text(pdf_data: bytes) -> Optional[str]:
    try:
        reader = PdfReader(io.BytesIO(pdf_data))
        text = "\n".join((page.extract_text() or "") for page in reader.pages).strip()
        logger.info(f"Extracted {len(text)} characters from a {len(reader.pages)}-page PDF.")
        return text or None
    except Exception as e:
        logger.error(f"Error extracting text from PDF: {e}", exc_info=True)
        return None

# END OF FILE: botzin/infra/clients/pdf_client.py
