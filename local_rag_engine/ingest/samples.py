from __future__ import annotations

import time
from typing import List

from ..index.schema import Document

_DAY_MS = 86_400_000

IQRA_FAQ_2025 = """GENERAL POLICY & ADMISSIONS POLICY 2025

Announcement: Admission campaigns are officially announced through the University's website and social media platforms.

Equal Opportunity: Applications are considered without discrimination on the basis of race, gender, age, religion, marital status, physical disability, or national origin.

Merit-Based Selection: Admissions at Iqra University are strictly merit-based. Applicants must:
1. Pass the admission test.
2. Appear in and qualify the interview.
3. Meet the eligibility criteria of the respective program.
4. Submit all required credentials, which will be carefully reviewed.

Application Submission: All admission documents must be uploaded through the online admission portal: iqra.edu.pk.

Policy Rights: The University reserves the right to revise its admission policy at any time without prior notice.

ADMISSIONS TIMELINE:
Admissions in offered programs are announced two months prior to the commencement of classes:
- Spring Semester (March to June): Admission starts in November.
- Summer Semester (July to September): Admission starts in April.
- Fall Semester (October to February): Admission starts in August."""

NLP_COURSE_POLICY = (
    "This course covers Natural Language Processing (NLP). Total marks for the CCP are 11. "
    "Due date is the last class. Topics include RAG, LLMs, Embeddings, and Vector Databases. "
    "Late submissions will result in a 10% deduction per day. "
    "Attendance of 75% is mandatory to sit in the final exam."
)


def sample_documents() -> List[Document]:
    """The two seed resources the knowledge base starts with."""
    now = int(time.time() * 1000)
    return [
        Document(id="doc-1", title="IQRA UNIVERSITY FAQ 2025", content=IQRA_FAQ_2025, upload_date=now - _DAY_MS),
        Document(id="doc-2", title="NLP Course Policy", content=NLP_COURSE_POLICY, upload_date=now - _DAY_MS // 2),
    ]
