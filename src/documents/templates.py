"""
Clause text for the two contract variants.

Placeholders filled at render time: ``{provider}``, ``{company}``, ``{date}``
and ``{amount}`` (already formatted, without the dollar sign).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from src.integrations.contracts.interfaces import ContractVariant


@dataclass(frozen=True)
class ContractTemplate:
    subtitle: str
    sections: List[Tuple[str, str]]
    overview: str
    scope_heading: str
    scope_fallback: str
    sow_extra: List[Tuple[str, str]] = field(default_factory=list)
    investment: List[Tuple[str, str]] = field(default_factory=list)
    investment_note: str = ""


_CONFIDENTIALITY = (
    "Each party agrees to maintain the confidentiality of any proprietary or confidential information "
    "disclosed by the other party during the term of this Agreement. This obligation shall survive "
    "termination for a period of two (2) years. Confidential information does not include information "
    "that: (a) is or becomes publicly available through no fault of the receiving party; (b) was known "
    "to the receiving party prior to disclosure; (c) is independently developed by the receiving party; "
    "or (d) is disclosed with the prior written consent of the disclosing party."
)

_NON_SOLICITATION = (
    "During the term of this Agreement and for twelve (12) months following its termination, Client "
    "shall not directly or indirectly solicit, recruit, or hire any employee, contractor, or consultant "
    "of Service Provider who was involved in performing services under this Agreement."
)

_INDEMNIFICATION = (
    "Each party shall indemnify and hold harmless the other party from any third-party claims, damages, "
    "or expenses arising from the indemnifying party’s breach of this Agreement or negligent acts."
)

_FORCE_MAJEURE = (
    "Neither party shall be liable for any failure or delay in performance under this Agreement due to "
    "circumstances beyond its reasonable control, including but not limited to acts of God, natural "
    "disasters, pandemic, government actions, war, terrorism, labor disputes, power failures, internet "
    "disruptions, or third-party service outages. The affected party shall provide prompt notice and use "
    "reasonable efforts to mitigate the impact."
)

_GOVERNING_LAW = (
    "This Agreement shall be governed by and construed in accordance with the laws of the State of "
    "Wyoming. Any disputes arising under this Agreement shall be resolved through binding arbitration in "
    "the State of Wyoming, in accordance with the rules of the American Arbitration Association. The "
    "prevailing party shall be entitled to recover reasonable attorneys’ fees and costs."
)

_GENERAL_PROVISIONS = (
    "This Agreement constitutes the entire agreement between the parties and supersedes all prior "
    "negotiations, representations, or agreements relating to the subject matter hereof. This Agreement "
    "may not be amended except by written instrument signed by both parties. If any provision of this "
    "Agreement is held to be unenforceable, the remaining provisions shall remain in full force and effect."
)

_IP_TEMPLATE = (
    "All work product created by Service Provider in the performance of this Agreement shall become the "
    "property of Client upon receipt of full payment{period}. Until full payment is received, all "
    "intellectual property rights remain exclusively with Service Provider. Service Provider retains the "
    "right to use general knowledge, skills, and experience gained during the engagement, as well as any "
    "tools, frameworks, or methodologies that existed prior to or were developed independently of this "
    "Agreement."
)

_ACCEPTANCE = (
    "Upon delivery of any work product, Client shall have four (4) business days to review and provide "
    "written objection. If no written objection is received within this period, deliverables shall be "
    "deemed accepted."
)

_LIABILITY = (
    "In no event shall either party be liable to the other for any indirect, incidental, special, "
    "consequential, or punitive damages, regardless of the cause of action or the theory of liability. "
    "Service Provider’s total aggregate liability under this Agreement shall not exceed the total "
    "fees paid by Client {cap}."
)


SPRINT1 = ContractTemplate(
    subtitle="Sprint 1 — 60-Day Engagement",
    sections=[
        ("Services",
         "{provider} (“Service Provider”) agrees to provide Answer Engine Optimization services to "
         "{company} (“Client”) as described in the Statement of Work attached hereto. Services shall "
         "not commence until full payment has been received by Service Provider."),
        ("Term",
         "This Agreement shall commence on {date} and shall continue for a period of sixty (60) calendar "
         "days (“Sprint Period”), unless terminated earlier in accordance with Section 9."),
        ("Payment Terms",
         "Client shall pay Service Provider the total fee of ${amount} USD upon execution of this Agreement. "
         "Payment is due prior to commencement of services. If payment is not received within seven (7) "
         "days of the Agreement date, Service Provider reserves the right to suspend all services until "
         "payment is received. All fees are non-refundable once work has commenced. Late payments shall "
         "accrue interest at a rate of 1.5% per month."),
        ("Deliverable Acceptance",
         _ACCEPTANCE + " This acceptance timeline is critical to maintaining the Sprint schedule."),
        ("Intellectual Property", _IP_TEMPLATE.format(period="")),
        ("Confidentiality", _CONFIDENTIALITY),
        ("Non-Solicitation", _NON_SOLICITATION),
        ("Limitation of Liability", _LIABILITY.format(cap="under this Agreement")),
        ("Termination",
         "Either party may terminate this Agreement with thirty (30) days written notice. In the event of "
         "termination, Client shall pay for all services rendered through the date of termination. All "
         "fees paid prior to termination are non-refundable once work has commenced. Service Provider may "
         "terminate this Agreement immediately if Client fails to make payment within seven (7) days of "
         "the due date."),
        ("Indemnification", _INDEMNIFICATION),
        ("Force Majeure", _FORCE_MAJEURE),
        ("Governing Law & Dispute Resolution", _GOVERNING_LAW),
        ("General Provisions", _GENERAL_PROVISIONS),
    ],
    overview=(
        "Service Provider shall deliver a comprehensive Answer Engine Optimization sprint for Client, "
        "focused on improving Client’s visibility and performance across AI-powered answer engines "
        "and search platforms."
    ),
    scope_heading="Deliverable",
    scope_fallback="Comprehensive AEO audit, content strategy, and optimization implementation.",
    sow_extra=[
        ("Timeline",
         "All deliverables shall be completed within sixty (60) calendar days from the date of payment "
         "receipt."),
    ],
    investment=[
        ("Total Sprint Fee:  ", "${amount} USD"),
        ("Payment Terms:  ", "Due upon execution, prior to commencement of services."),
    ],
    investment_note="All fees are non-refundable once work has commenced.",
)


PHASE2 = ContractTemplate(
    subtitle="Phase 2 — Ongoing Monthly Retainer",
    sections=[
        ("Services",
         "{provider} (“Service Provider”) agrees to provide ongoing Answer Engine Optimization "
         "services to {company} (“Client”) as described in the Statement of Work attached hereto. "
         "Services shall not commence until initial payment has been received by Service Provider."),
        ("Term & Renewal",
         "This Agreement shall commence on {date} and shall continue on a month-to-month basis, "
         "automatically renewing at the beginning of each billing period, unless terminated in accordance "
         "with Section 9. Each billing period begins on the first of the month following the commencement "
         "date."),
        ("Payment Terms",
         "Client shall pay Service Provider a monthly retainer fee of ${amount} USD, due on the first of "
         "each month. The initial payment is due upon execution of this Agreement. If payment is not "
         "received within seven (7) days of the due date, Service Provider reserves the right to suspend "
         "all services until payment is received. Late payments shall accrue interest at a rate of 1.5% "
         "per month. Retainer fees may be adjusted by mutual written agreement between both parties."),
        ("Deliverable Acceptance", _ACCEPTANCE),
        ("Intellectual Property", _IP_TEMPLATE.format(period=" for the applicable billing period")),
        ("Confidentiality", _CONFIDENTIALITY),
        ("Non-Solicitation", _NON_SOLICITATION),
        ("Limitation of Liability", _LIABILITY.format(cap="in the three (3) months preceding the claim")),
        ("Termination",
         "Either party may terminate this Agreement with thirty (30) days written notice, effective at the "
         "end of the current billing period. Failure to provide the required thirty (30) days written "
         "notice shall result in an early termination fee of $5,000 USD, payable immediately. Client shall "
         "pay for all services rendered through the effective date of termination. Service Provider may "
         "terminate this Agreement immediately if Client fails to make payment within seven (7) days of "
         "the due date."),
        ("Indemnification", _INDEMNIFICATION),
        ("Force Majeure", _FORCE_MAJEURE),
        ("Reporting",
         "Service Provider shall deliver monthly performance reports to Client, summarizing work completed, "
         "key metrics, and recommendations for the upcoming period."),
        ("Governing Law & Dispute Resolution", _GOVERNING_LAW),
        ("General Provisions", _GENERAL_PROVISIONS),
    ],
    overview=(
        "Service Provider shall deliver ongoing Answer Engine Optimization services for Client, including "
        "continuous strategy, optimization, and performance monitoring across AI-powered answer engines "
        "and search platforms."
    ),
    scope_heading="Scope of Services",
    scope_fallback="As mutually agreed upon by both parties.",
    sow_extra=[
        ("Reporting",
         "Monthly performance reports will be delivered summarizing work completed, key metrics, and "
         "strategic recommendations."),
    ],
    investment=[
        ("Monthly Retainer:  ", "${amount} USD"),
        ("Payment Due:  ", "First of each month"),
        ("Initial Payment:  ", "Due upon execution of this Agreement"),
    ],
)


TEMPLATES: Dict[ContractVariant, ContractTemplate] = {
    ContractVariant.SPRINT1: SPRINT1,
    ContractVariant.PHASE2: PHASE2,
}


def fill(text: str, **values: str) -> str:
    """Substitute placeholders. Literal ``$`` and ``%`` in clause text are left alone."""
    for key, value in values.items():
        text = text.replace("{" + key + "}", value)
    return text
