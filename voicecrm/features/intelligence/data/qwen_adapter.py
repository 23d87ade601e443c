# File: voicecrm/features/intelligence/data/qwen_adapter.py
import json
import logging
import re
from typing import Any, Dict

from voicecrm.core.config.settings import settings
from voicecrm.core.errors import ExtractionFailure
from voicecrm.core.model_lifecycle.orchestrator import ModelOrchestrator
from voicecrm.core.model_lifecycle.types import ModelType
from voicecrm.features.transcription.domain.interfaces import ITranscriptEnhancer
from voicecrm.features.transcription.domain.models import ExtractedHints

logger = logging.getLogger(__name__)

_CUSTOMER_KEYS = ("name", "company", "position", "email", "phone")
_DEAL_KEYS = ("value", "status")


class QwenEnhancementAdapter(ITranscriptEnhancer):
    """
    Cleans a raw sales-call transcript and pulls CRM hints out of it with a
    local instruction-tuned model.
    """

    def __init__(self, model_path: str = None):
        self.model_path = model_path or settings.ENHANCER_MODEL_PATH
        self.orchestrator = ModelOrchestrator()

    def _load(self):
        import torch
        from transformers import AutoModelForCausalLM, AutoTokenizer, BitsAndBytesConfig

        logger.info(f"Loading enhancer from {self.model_path}...")
        kwargs = {"device_map": "auto", "trust_remote_code": True}
        if torch.cuda.is_available():
            kwargs["quantization_config"] = BitsAndBytesConfig(
                load_in_4bit=True,
                bnb_4bit_use_double_quant=True,
                bnb_4bit_quant_type="nf4",
                bnb_4bit_compute_dtype=torch.bfloat16,
            )
        tokenizer = AutoTokenizer.from_pretrained(self.model_path)
        model = AutoModelForCausalLM.from_pretrained(self.model_path, **kwargs)
        return model, tokenizer

    def enhance(self, text: str) -> ExtractedHints:
        if not text.strip():
            return ExtractedHints()

        try:
            model, tokenizer = self.orchestrator.request_model(ModelType.QWEN_ENHANCER, self._load)
            inputs = tokenizer([self._build_prompt(text)], return_tensors="pt").to(model.device)
            generated_ids = model.generate(**inputs, max_new_tokens=768, do_sample=False)
            response = tokenizer.batch_decode(
                generated_ids[:, inputs.input_ids.shape[1]:],
                skip_special_tokens=True
            )[0]
        except Exception as e:
            raise ExtractionFailure(f"Enhancer inference failed: {e}") from e

        return self._parse_response(response)

    def _build_prompt(self, text: str) -> str:
        return f"""<|im_start|>system
You are a sales CRM assistant. Analyze the voice transcription of a Thai sales conversation.
1. Clean the transcription: fix grammar and punctuation, keep the meaning, keep it in Thai.
2. Extract customer name, company, position, email and phone if mentioned.
3. Extract deal value and deal status if mentioned.
4. List follow-up action items.
5. Write a one sentence summary.

Output MUST be a single valid JSON object.
Example Format:
{{"enhancedText": "...", "customerInfo": {{"name": "", "company": "", "position": "", "email": "", "phone": ""}}, "dealInfo": {{"value": "", "status": ""}}, "actionItems": ["..."], "summary": "..."}}
<|im_end|>
<|im_start|>user
Transcript:
{text}
<|im_end|>
<|im_start|>assistant
"""

    def _parse_response(self, response: str) -> ExtractedHints:
        # Extract JSON block in case of conversational filler
        json_match = re.search(r"\{.*\}", response, re.DOTALL)
        try:
            data = json.loads(json_match.group() if json_match else response)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse enhancer JSON response: {e}. Raw response: {response}")
            raise ExtractionFailure("Enhancer returned malformed JSON") from e

        if not isinstance(data, dict):
            raise ExtractionFailure("Enhancer returned a non-object payload")

        action_items = data.get("actionItems") or []
        if not isinstance(action_items, list):
            action_items = []

        return ExtractedHints(
            customer_info=_pick(data.get("customerInfo"), _CUSTOMER_KEYS),
            deal_info=_pick(data.get("dealInfo"), _DEAL_KEYS),
            action_items=[str(item).strip() for item in action_items if str(item).strip()],
            summary=str(data.get("summary") or "").strip(),
            enhanced_text=str(data.get("enhancedText") or "").strip(),
        )


def _pick(section: Any, keys) -> Dict[str, str]:
    """Keeps only known, non-empty string fields."""
    if not isinstance(section, dict):
        return {}
    return {k: str(section[k]).strip() for k in keys if section.get(k) and str(section[k]).strip()}
