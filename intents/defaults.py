"""
Built-in intent corpus: customer-service intents for a retail bank.

Used when no corpus file is configured.
"""

from typing import List

from .models import (
    CategoryDefinition,
    FAQEntry,
    IntentDefinition,
    ParameterKind,
    ParameterSpec,
    ParameterValidation,
)
from .rules import parse_rule


def get_default_categories() -> List[CategoryDefinition]:
    """Categories in topic-resolution order."""
    return [
        CategoryDefinition(
            id="general",
            name="General",
            description="General inquiries and information",
            allowed_transitions=["banking", "billing", "support", "sales", "scheduling"],
            suggestions=["How can I help you?", "What would you like to know?"],
        ),
        CategoryDefinition(
            id="banking",
            name="Banking",
            description="Account-related inquiries and management",
            allowed_transitions=["general", "billing", "support"],
            suggestions=["Check account balance", "View recent transactions", "Transfer funds"],
        ),
        CategoryDefinition(
            id="billing",
            name="Billing",
            description="Billing, payments, and transfers",
            allowed_transitions=["general", "banking", "support"],
            suggestions=["Check current balance", "Make a payment", "Wire transfer fees"],
        ),
        CategoryDefinition(
            id="support",
            name="Support",
            description="Technical support and complaints",
            allowed_transitions=["general", "banking", "billing"],
            rules=[
                parse_rule(
                    "intent:complaint",
                    "emit:I'm sorry to hear about your experience. I've logged your "
                    "complaint and a supervisor will follow up with you shortly.",
                ),
            ],
            suggestions=["Report an issue", "Get help with login", "Reset password"],
        ),
        CategoryDefinition(
            id="sales",
            name="Sales",
            description="Product and service inquiries",
            allowed_transitions=["general", "scheduling"],
            suggestions=["Learn about products", "Get pricing information", "Schedule a demo"],
        ),
        CategoryDefinition(
            id="scheduling",
            name="Scheduling",
            description="Appointment and booking requests",
            allowed_transitions=["general", "sales"],
            suggestions=["Book an appointment", "Check availability", "Reschedule"],
        ),
    ]


def get_general_intents() -> List[IntentDefinition]:
    return [
        IntentDefinition(
            id="greeting",
            name="Greeting",
            description="User says hello",
            topic="general",
            priority=1,
            keywords=["hello", "hi", "hey", "good morning", "good afternoon", "good evening", "greetings"],
            patterns=["hello", "hi there", "how are you"],
            base_confidence=0.9,
            suggested_actions=["provide_welcome_message", "ask_how_can_help"],
            response_templates=["Hello! How can I help you today?"],
        ),
        IntentDefinition(
            id="general_inquiry",
            name="General Inquiry",
            description="General questions or non-specific inquiries",
            topic="general",
            priority=5,
            keywords=["information", "question", "inquiry", "assistance", "general question", "more details", "explain"],
            patterns=["what is", "how do I", "when can I"],
            base_confidence=0.7,
            suggested_actions=["ask_for_clarification", "provide_general_info"],
            response_templates=["I'd be happy to help you with that. Could you provide more details?"],
        ),
        IntentDefinition(
            id="goodbye",
            name="Goodbye",
            description="User ends the conversation",
            topic="general",
            priority=4,
            keywords=["bye", "goodbye", "thanks", "farewell"],
            patterns=["that's all", "thank you, bye"],
            base_confidence=0.9,
            suggested_actions=["close_conversation"],
            response_templates=["Thanks for reaching out. Have a great day!"],
        ),
        IntentDefinition(
            id="branch_location_info",
            name="Branch and Location Information",
            description="Information about branch locations and ATMs",
            topic="general",
            priority=3,
            keywords=["branch", "location", "atm", "nearest branch", "branch hours", "opening hours"],
            base_confidence=0.8,
            suggested_actions=["provide_branch_locator", "explain_atm_network"],
            response_templates=[
                "We have over 500 branches nationwide and 2,000+ ATMs. You can find the "
                "nearest location using the branch locator on our website or mobile app."
            ],
            faq_entries=[
                FAQEntry(
                    trigger_phrases=["branch", "atm", "open on saturday"],
                    response=(
                        "Most branches are open Monday to Friday 9am-5pm and Saturday 9am-1pm. "
                        "ATMs are available 24/7."
                    ),
                ),
            ],
        ),
    ]


def get_banking_intents() -> List[IntentDefinition]:
    return [
        IntentDefinition(
            id="account_inquiry",
            name="Account Inquiry",
            description="Questions about account status or account information",
            topic="banking",
            priority=1,
            keywords=[
                "account", "account balance", "account status", "account details",
                "my account", "account summary", "statement", "transactions",
            ],
            patterns=["check my account", "what is my balance", "show transactions"],
            base_confidence=0.85,
            suggested_actions=["fetch_account_info", "ask_for_account_number"],
            response_templates=[
                "Thanks, I've pulled up account {accountId}. What would you like to know about it?",
            ],
            parameter_specs=[
                ParameterSpec(
                    name="accountId",
                    kind=ParameterKind.STRING,
                    required=True,
                    description="Account identifier",
                    examples=["ACC123456"],
                    prompt="Could you share your account ID? It looks like ACC123456.",
                    validation=ParameterValidation(pattern=r"\b[A-Z]{3}\d{6}\b"),
                ),
                ParameterSpec(
                    name="dateRange",
                    kind=ParameterKind.DATE,
                    required=False,
                    description="Statement start date",
                ),
            ],
        ),
    ]


def get_billing_intents() -> List[IntentDefinition]:
    return [
        IntentDefinition(
            id="billing_balance",
            name="Billing Balance",
            description="Questions about current balance, payments due, or bills",
            topic="billing",
            priority=2,
            keywords=[
                "current balance", "bill amount", "payment due", "outstanding balance",
                "billing statement", "balance due", "amount owed", "invoice",
            ],
            base_confidence=0.85,
            suggested_actions=["check_current_balance", "view_payment_due_date", "make_payment"],
            response_templates=["I can check your current billing balance. Let me look that up for you."],
            parameter_specs=[
                ParameterSpec(
                    name="amount",
                    kind=ParameterKind.NUMBER,
                    description="Payment amount",
                    examples=["50.00", "100.00"],
                    validation=ParameterValidation(min_value=0.01, max_value=10000.00),
                ),
            ],
        ),
        IntentDefinition(
            id="payment_issue",
            name="Payment Issue",
            description="Declined transactions or payment method problems",
            topic="billing",
            priority=2,
            keywords=[
                "payment declined", "payment failed", "card declined", "payment error",
                "transaction failed", "billing problem", "payment method", "cannot pay",
            ],
            base_confidence=0.8,
            suggested_actions=["update_payment_method", "check_payment_status", "contact_bank"],
            response_templates=["I can help resolve your payment issue. Let me check the details."],
            parameter_specs=[
                ParameterSpec(
                    name="paymentMethod",
                    kind=ParameterKind.STRING,
                    description="Payment method",
                    examples=["credit card", "debit card", "bank transfer", "paypal"],
                ),
                ParameterSpec(
                    name="errorCode",
                    kind=ParameterKind.STRING,
                    description="Payment error code",
                    examples=["DECLINED", "INSUFFICIENT_FUNDS", "EXPIRED_CARD"],
                ),
            ],
        ),
        IntentDefinition(
            id="wire_transfer_info",
            name="Wire Transfer Information",
            description="Wire transfer fees and process",
            topic="billing",
            priority=3,
            keywords=[
                "wire transfer", "international transfer", "transfer fee",
                "transfer cost", "international wire", "domestic wire",
            ],
            base_confidence=0.8,
            suggested_actions=["provide_transfer_fees", "explain_transfer_process"],
            response_templates=[
                "International wire transfers typically cost $25-45 depending on the destination "
                "country and amount. Domestic wire transfers are usually $15-25.",
            ],
            parameter_specs=[
                ParameterSpec(
                    name="transferType",
                    kind=ParameterKind.STRING,
                    description="Type of transfer",
                    examples=["domestic", "international"],
                ),
            ],
            faq_entries=[
                FAQEntry(
                    trigger_phrases=["wire", "transfer", "fee", "cost"],
                    response=(
                        "International wire transfers typically cost $25-45 depending on the "
                        "destination country and amount. Domestic wire transfers are usually $15-25."
                    ),
                ),
            ],
        ),
    ]


def get_support_intents() -> List[IntentDefinition]:
    return [
        IntentDefinition(
            id="technical_support",
            name="Technical Support",
            description="Technical issues or service problems",
            topic="support",
            priority=3,
            keywords=[
                "technical problem", "not working", "connection issues", "service down",
                "error message", "slow internet", "system issue", "broken",
            ],
            base_confidence=0.8,
            suggested_actions=["create_support_ticket", "escalate_to_human"],
            response_templates=[
                "Thanks. I've opened a ticket for your {issueType} issue and will walk you "
                "through some diagnostics.",
            ],
            parameter_specs=[
                ParameterSpec(
                    name="issueType",
                    kind=ParameterKind.STRING,
                    required=True,
                    description="Type of technical issue",
                    examples=["connectivity", "speed", "equipment", "software", "login"],
                    prompt="What kind of issue are you seeing: connectivity, speed, equipment, software, or login?",
                ),
                ParameterSpec(
                    name="equipmentId",
                    kind=ParameterKind.STRING,
                    description="Equipment identifier",
                    examples=["MODEM001", "ROUTER123"],
                ),
            ],
        ),
        IntentDefinition(
            id="complaint",
            name="Complaint",
            description="Complaints about service",
            topic="support",
            priority=2,
            keywords=[
                "complaint", "complain", "unhappy", "dissatisfied",
                "mistake", "angry", "poor service", "frustrated",
            ],
            patterns=["I want to complain", "I am not happy", "this is wrong"],
            base_confidence=0.9,
            suggested_actions=["apologize", "escalate_to_supervisor"],
            response_templates=["I'm sorry to hear about your experience. Let me help you resolve this."],
            parameter_specs=[
                ParameterSpec(
                    name="incidentDate",
                    kind=ParameterKind.DATE,
                    description="Date of the incident",
                ),
            ],
        ),
        IntentDefinition(
            id="password_reset_info",
            name="Password Reset Information",
            description="Password reset and account recovery",
            topic="support",
            priority=3,
            keywords=["password", "reset password", "forgot password", "locked out", "cannot login"],
            base_confidence=0.8,
            suggested_actions=["provide_password_reset_steps", "connect_to_support"],
            response_templates=[
                "To reset your password, go to the login page and click 'Forgot Password', then "
                "follow the instructions sent to your email.",
            ],
            faq_entries=[
                FAQEntry(
                    trigger_phrases=["password", "reset", "forgot"],
                    response=(
                        "To reset your password, go to the login page and click 'Forgot Password', "
                        "then follow the instructions sent to your email. You can also call our "
                        "support team for assistance."
                    ),
                ),
            ],
        ),
    ]


def get_sales_intents() -> List[IntentDefinition]:
    return [
        IntentDefinition(
            id="product_inquiry",
            name="Product Inquiry",
            description="Questions about products, plans, and pricing",
            topic="sales",
            priority=3,
            keywords=["product", "products", "feature", "price", "pricing", "plan", "package", "upgrade"],
            patterns=["tell me about", "what is the price", "what features"],
            base_confidence=0.8,
            suggested_actions=["provide_product_info", "connect_to_sales"],
            response_templates=["I'd be happy to tell you about our products and services. What interests you?"],
            parameter_specs=[
                ParameterSpec(
                    name="productName",
                    kind=ParameterKind.STRING,
                    description="Product name",
                    examples=["checking account", "savings account", "credit card", "mortgage"],
                ),
            ],
        ),
    ]


def get_scheduling_intents() -> List[IntentDefinition]:
    return [
        IntentDefinition(
            id="appointment",
            name="Appointment",
            description="Appointment and booking requests",
            topic="scheduling",
            priority=2,
            keywords=["appointment", "schedule", "booking", "meeting", "reservation", "book", "visit", "time slot"],
            patterns=["I want to schedule", "book an appointment", "make a reservation"],
            base_confidence=0.85,
            suggested_actions=["check_availability", "confirm_details"],
            response_templates=[
                "You're booked in for {date} at {time}. Is there anything else I can help with?",
            ],
            parameter_specs=[
                ParameterSpec(
                    name="date",
                    kind=ParameterKind.DATE,
                    required=True,
                    description="Appointment date",
                    prompt="What date would you like to come in? (for example 12/05/2026)",
                ),
                ParameterSpec(
                    name="time",
                    kind=ParameterKind.TIME,
                    required=True,
                    description="Appointment time",
                    prompt="What time works best for you? (for example 10:30 am)",
                ),
                ParameterSpec(
                    name="serviceType",
                    kind=ParameterKind.STRING,
                    description="Service type",
                    examples=["consultation", "account opening", "loan"],
                ),
                ParameterSpec(
                    name="duration",
                    kind=ParameterKind.NUMBER,
                    description="Duration in minutes",
                    validation=ParameterValidation(min_value=15, max_value=240),
                ),
            ],
        ),
    ]


def get_default_intents() -> List[IntentDefinition]:
    """All built-in intents in corpus order."""
    return (
        get_general_intents()
        + get_banking_intents()
        + get_billing_intents()
        + get_support_intents()
        + get_sales_intents()
        + get_scheduling_intents()
    )
