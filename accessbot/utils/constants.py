"""
accessbot/utils/constants.py

Purpose: Centralized static content

- All user-facing and reviewer-facing messages
- Button labels
- Command list

(Prevents hardcoding across the codebase)
"""

# ============================================================
# WELCOME & ONBOARDING
# ============================================================

WELCOME_MESSAGE = (
    "👋 Welcome to the authorization bot!\n\n"
    "To gain access to our channel, please complete the following 3 steps:\n\n"
    "📱 Step 1: Share your phone number\n"
    "📊 Step 2: Answer a quick poll\n"
    "💬 Step 3: Provide a text response\n\n"
    "Let's get started!"
)

START_REQUIRED_MESSAGE = "Please start the authorization process first using /start"

UNKNOWN_USER_MESSAGE = "Unable to identify user."

# ============================================================
# STEP 1 - PHONE
# ============================================================

ASK_PHONE_MESSAGE = "📱 {progress}: Please share your phone number"

SHARE_PHONE_BUTTON = "📱 Share Phone Number"

FOREIGN_CONTACT_MESSAGE = (
    "❌ Please share your own phone number, not someone else's.\n\n"
    "Use the button below to share your contact."
)

PHONE_RECEIVED_MESSAGE = "✅ Phone number received!"

# ============================================================
# STEP 2 - POLL
# ============================================================

ASK_POLL_MESSAGE = "📊 {progress}: Please answer this poll question"

EMPTY_POLL_SELECTION_MESSAGE = "❌ Please select an option from the poll."

INVALID_POLL_OPTION_MESSAGE = "❌ That option is not available. Please choose one of the poll options."

POLL_RECEIVED_MESSAGE = "✅ Poll answer received!"

# ============================================================
# STEP 3 - TEXT
# ============================================================

ASK_TEXT_MESSAGE = (
    "💬 {progress}: Please provide a text response.\n\n"
    "Type your message below (or use /cancel to restart):"
)

TEXT_TOO_SHORT_MESSAGE = (
    "❌ Your response is too short. Please provide at least {min_length} characters.\n\n"
    "Try again:"
)

TEXT_TOO_LONG_MESSAGE = (
    "❌ Your response is too long. Please keep it under {max_length} characters.\n\n"
    "Try again:"
)

# ============================================================
# SUBMISSION
# ============================================================

SUBMISSION_RECEIVED_MESSAGE = "✅ Thank you! Your application is being reviewed."

SUBMISSION_FAILED_MESSAGE = (
    "⚠️ There was an error submitting your application. Please try again later.\n\n"
    "Send any message to retry, or /cancel to start over."
)

SUBMISSION_RETRY_MESSAGE = "🔄 Retrying delivery of your application..."

APPROVE_BUTTON = "✅ Approve"
REJECT_BUTTON = "❌ Reject"

REVIEWER_SUBMISSION_TEMPLATE = (
    "<b>📋 New user application</b>\n\n"
    "<b>User information:</b>\n"
    "👤 Name: <code>{display_name}</code>\n"
    "🆔 Username: <code>{username}</code>\n"
    "🔢 User ID: <code>{user_id}</code>\n\n"
    "<b>Answers:</b>\n"
    "📞 Phone: <code>{phone}</code>\n"
    "📊 Poll choice: <i>{poll_choice}</i>\n"
    "💬 Text response: <i>{text_response}</i>\n\n"
    "⏰ Started: {started_at}"
)

NOT_AVAILABLE = "N/A"

# ============================================================
# REVIEW DECISIONS
# ============================================================

APPROVED_USER_MESSAGE = (
    "✅ Your authorization request has been approved!\n\n"
    "Join the channel using this link: {invite_link}\n\n"
    "Note: This link expires in {expires_in}."
)

REJECTED_USER_MESSAGE = (
    "❌ Your authorization request has been rejected.\n\n"
    "If you believe this is an error, please contact support."
)

APPROVED_MARK = "✅ <b>APPROVED</b>"
REJECTED_MARK = "❌ <b>REJECTED</b>"

CALLBACK_APPROVED = "✅ User approved and invite sent!"
CALLBACK_REJECTED = "❌ User rejected and notified."
CALLBACK_UNAUTHORIZED = "⛔ Unauthorized. Admin only."
CALLBACK_INVALID = "Invalid callback data"
CALLBACK_SESSION_NOT_FOUND = "⚠️ User session not found"
CALLBACK_NOT_COMPLETED = "⚠️ This application is not complete yet"
CALLBACK_UNKNOWN_ACTION = "Unknown action"
CALLBACK_PROCESSING_ERROR = "⚠️ Error processing request"

COMMAND_UNAUTHORIZED_MESSAGE = "⛔ Unauthorized. This command is admin-only."
COMMAND_USAGE_MESSAGE = "Usage: /{command} <user_id>"
COMMAND_APPROVED_MESSAGE = "User {user_id} has been approved and sent an invite link."
COMMAND_REJECTED_MESSAGE = "User {user_id} has been notified of denial."
COMMAND_FAILED_MESSAGE = "⚠️ Failed to process the decision for user {user_id}. Please try again."

# ============================================================
# OTHER COMMANDS
# ============================================================

CANCELLED_MESSAGE = "❌ Authorization process cancelled.\n\nUse /start to begin again."

ACCESS_REQUEST_TEMPLATE = (
    "📝 New Access Request:\n\n{user_info}\n\n"
    "Use /approve {user_id} or /deny {user_id} to respond."
)

REQUEST_SUBMITTED_MESSAGE = "Your request has been submitted to the admin for review."
REQUEST_FAILED_MESSAGE = "Failed to submit request. Please try again later."

HELP_MESSAGE = (
    "🤖 Bot Commands:\n\n"
    "/start - Start the bot\n"
    "/cancel - Cancel the current application\n"
    "/request - Request channel access\n"
    "/help - Show this help message"
)

REVIEWER_HELP_MESSAGE = (
    "\n\nAdmin Commands:\n"
    "/approve <user_id> - Approve user request\n"
    "/deny <user_id> - Deny user request"
)

GENERIC_ERROR_MESSAGE = "An error occurred. Please try again later."
