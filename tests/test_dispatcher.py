"""
Tests for update routing and the questionnaire / review handlers.
The Telegram client is an AsyncMock; no network is involved.
"""

import pytest

from accessbot.core.exceptions import TelegramAPIError
from accessbot.flow.states import SessionStep
from accessbot.utils import constants

from factories import (
    CHANNEL_ID,
    OTHER_USER_ID,
    REVIEWER_ID,
    USER_ID,
    callback_update,
    contact_update,
    message_update,
    poll_answer_update,
)


def sent(bot):
    """(chat_id, text) for every send_message call, in order."""
    return [(c.args[0], c.args[1]) for c in bot.send_message.call_args_list]


def sent_to(bot, chat_id):
    return [text for target, text in sent(bot) if str(target) == str(chat_id)]


async def complete_questionnaire(dispatcher, text="I would like to join."):
    await dispatcher.feed_raw_update(message_update("/start"))
    await dispatcher.feed_raw_update(contact_update())
    await dispatcher.feed_raw_update(poll_answer_update([0]))
    await dispatcher.feed_raw_update(message_update(text))


class TestStart:

    @pytest.mark.asyncio
    async def test_start_creates_session_and_asks_for_phone(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))

        session = store.get(USER_ID)
        assert session.step == SessionStep.AWAITING_PHONE
        assert session.username == "jdoe"
        assert session.first_name == "John"

        texts = sent_to(bot, USER_ID)
        assert texts[0] == constants.WELCOME_MESSAGE
        assert "Step 1/3" in texts[1]
        keyboard = bot.send_message.call_args_list[1].kwargs["reply_markup"]
        assert keyboard["keyboard"][0][0]["request_contact"] is True

    @pytest.mark.asyncio
    async def test_start_resets_progress(self, dispatcher, store):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(contact_update())
        assert store.get(USER_ID).step == SessionStep.AWAITING_POLL

        await dispatcher.feed_raw_update(message_update("/start"))

        session = store.get(USER_ID)
        assert session.step == SessionStep.AWAITING_PHONE
        assert session.phone_number is None

    @pytest.mark.asyncio
    async def test_command_with_bot_suffix(self, dispatcher, store):
        await dispatcher.feed_raw_update(message_update("/start@AccessBot"))
        assert store.get(USER_ID) is not None


class TestContact:

    @pytest.mark.asyncio
    async def test_own_contact_advances_and_sends_poll(self, dispatcher, store, bot, test_settings):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(contact_update())

        session = store.get(USER_ID)
        assert session.step == SessionStep.AWAITING_POLL
        assert session.phone_number == "+15551234567"

        assert constants.PHONE_RECEIVED_MESSAGE in sent_to(bot, USER_ID)
        bot.send_poll.assert_awaited_once_with(
            USER_ID,
            question=test_settings.POLL_QUESTION,
            options=["Option A", "Option B"],
            is_anonymous=False
        )

    @pytest.mark.asyncio
    async def test_foreign_contact_rejected(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(contact_update(contact_user_id=OTHER_USER_ID))

        session = store.get(USER_ID)
        assert session.step == SessionStep.AWAITING_PHONE
        assert session.phone_number is None
        assert sent_to(bot, USER_ID)[-1] == constants.FOREIGN_CONTACT_MESSAGE
        bot.send_poll.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_contact_in_poll_step_changes_nothing(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(contact_update())
        before = store.get(USER_ID)

        await dispatcher.feed_raw_update(contact_update(phone_number="+19999999999"))

        after = store.get(USER_ID)
        assert after == before
        assert sent_to(bot, USER_ID)[-1] == "Please answer the poll first."

    @pytest.mark.asyncio
    async def test_contact_without_session(self, dispatcher, bot):
        await dispatcher.feed_raw_update(contact_update())
        assert sent_to(bot, USER_ID) == [constants.START_REQUIRED_MESSAGE]


class TestPollAnswer:

    @pytest.mark.asyncio
    async def test_answer_stores_label(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(contact_update())
        await dispatcher.feed_raw_update(poll_answer_update([1]))

        session = store.get(USER_ID)
        assert session.step == SessionStep.AWAITING_TEXT
        assert session.poll_choice == "Option B"
        assert "Step 3/3" in sent_to(bot, USER_ID)[-1]

    @pytest.mark.asyncio
    async def test_empty_selection_rejected(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(contact_update())
        await dispatcher.feed_raw_update(poll_answer_update([]))

        assert store.get(USER_ID).step == SessionStep.AWAITING_POLL
        assert sent_to(bot, USER_ID)[-1] == constants.EMPTY_POLL_SELECTION_MESSAGE

    @pytest.mark.asyncio
    async def test_out_of_range_option_rejected(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(contact_update())
        await dispatcher.feed_raw_update(poll_answer_update([5]))

        assert store.get(USER_ID).step == SessionStep.AWAITING_POLL
        assert sent_to(bot, USER_ID)[-1] == constants.INVALID_POLL_OPTION_MESSAGE


class TestText:

    @pytest.mark.asyncio
    async def test_short_text_rejected(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(contact_update())
        await dispatcher.feed_raw_update(poll_answer_update([0]))
        await dispatcher.feed_raw_update(message_update("too short"))

        assert store.get(USER_ID).step == SessionStep.AWAITING_TEXT
        assert "at least 10 characters" in sent_to(bot, USER_ID)[-1]

    @pytest.mark.asyncio
    async def test_text_before_phone_reminds_with_keyboard(self, dispatcher, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(message_update("hello there, friend"))

        last = bot.send_message.call_args_list[-1]
        assert last.args[1] == "Please share your phone number using the button provided."
        assert last.kwargs["reply_markup"]["keyboard"][0][0]["request_contact"] is True

    @pytest.mark.asyncio
    async def test_unknown_command_is_not_treated_as_answer(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(contact_update())
        await dispatcher.feed_raw_update(poll_answer_update([0]))
        calls_before = bot.send_message.await_count

        await dispatcher.feed_raw_update(message_update("/whatever this is long"))

        assert store.get(USER_ID).step == SessionStep.AWAITING_TEXT
        assert bot.send_message.await_count == calls_before

    @pytest.mark.asyncio
    async def test_text_without_session(self, dispatcher, bot):
        await dispatcher.feed_raw_update(message_update("just saying hello"))
        assert sent_to(bot, USER_ID) == [constants.START_REQUIRED_MESSAGE]

    @pytest.mark.asyncio
    async def test_completion_forwards_to_reviewer(self, dispatcher, store, bot):
        await complete_questionnaire(dispatcher, text="  Ten chars!  ")

        session = store.get(USER_ID)
        assert session.step == SessionStep.COMPLETED
        assert session.text_response == "Ten chars!"
        assert session.submitted_at is not None

        reviewer_call = [c for c in bot.send_message.call_args_list if c.args[0] == str(REVIEWER_ID)][0]
        assert "Ten chars!" in reviewer_call.args[1]
        assert reviewer_call.kwargs["parse_mode"] == "HTML"
        buttons = reviewer_call.kwargs["reply_markup"]["inline_keyboard"][0]
        assert [b["callback_data"] for b in buttons] == [f"approve:{USER_ID}", f"reject:{USER_ID}"]
        assert sent_to(bot, USER_ID)[-1] == constants.SUBMISSION_RECEIVED_MESSAGE

    @pytest.mark.asyncio
    async def test_submission_escapes_html(self, dispatcher, bot):
        await complete_questionnaire(dispatcher, text="<b>bold</b> & more")

        reviewer_text = sent_to(bot, REVIEWER_ID)[0]
        assert "&lt;b&gt;bold&lt;/b&gt; &amp; more" in reviewer_text

    @pytest.mark.asyncio
    async def test_forward_failure_keeps_completed_and_retries(self, dispatcher, store, bot):
        async def fail_for_reviewer(chat_id, text, **kwargs):
            if str(chat_id) == str(REVIEWER_ID):
                raise TelegramAPIError("sendMessage", "chat not found")
            return {"message_id": 1}

        bot.send_message.side_effect = fail_for_reviewer
        await complete_questionnaire(dispatcher)

        session = store.get(USER_ID)
        assert session.step == SessionStep.COMPLETED
        assert session.awaiting_delivery
        assert sent_to(bot, USER_ID)[-1] == constants.SUBMISSION_FAILED_MESSAGE

        # Delivery works again: the next message re-sends the stored answers
        bot.send_message.side_effect = None
        await dispatcher.feed_raw_update(message_update("anything at all"))

        session = store.get(USER_ID)
        assert session.text_response == "I would like to join."
        assert not session.awaiting_delivery
        assert sent_to(bot, USER_ID)[-1] == constants.SUBMISSION_RECEIVED_MESSAGE

    @pytest.mark.asyncio
    async def test_text_after_delivery_says_already_completed(self, dispatcher, bot):
        await complete_questionnaire(dispatcher)
        await dispatcher.feed_raw_update(message_update("one more thing here"))

        assert sent_to(bot, USER_ID)[-1] == "You have already completed the authorization process."


class TestCancel:

    @pytest.mark.asyncio
    async def test_cancel_deletes_session(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(message_update("/cancel"))

        assert store.get(USER_ID) is None
        assert sent_to(bot, USER_ID)[-1] == constants.CANCELLED_MESSAGE

    @pytest.mark.asyncio
    async def test_cancel_without_session_still_acknowledges(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/cancel"))

        assert store.get(USER_ID) is None
        assert sent_to(bot, USER_ID) == [constants.CANCELLED_MESSAGE]


class TestCallback:

    @pytest.mark.asyncio
    async def test_non_reviewer_is_unauthorized(self, dispatcher, store, bot):
        await complete_questionnaire(dispatcher)
        before = store.get(USER_ID)

        await dispatcher.feed_raw_update(callback_update(f"approve:{USER_ID}", from_id=OTHER_USER_ID))

        bot.answer_callback_query.assert_awaited_once_with("cbq-1", constants.CALLBACK_UNAUTHORIZED, show_alert=True)
        assert store.get(USER_ID) == before
        bot.create_chat_invite_link.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", ["approve:0", "approve:", "approve:abc", "approve:--5"])
    async def test_malformed_payload(self, dispatcher, bot, data):
        await dispatcher.feed_raw_update(callback_update(data))
        bot.answer_callback_query.assert_awaited_once_with("cbq-1", constants.CALLBACK_INVALID, show_alert=True)

    @pytest.mark.asyncio
    async def test_reject_without_session(self, dispatcher, bot):
        await dispatcher.feed_raw_update(callback_update(f"reject:{USER_ID}"))
        bot.answer_callback_query.assert_awaited_once_with(
            "cbq-1", constants.CALLBACK_SESSION_NOT_FOUND, show_alert=True
        )

    @pytest.mark.asyncio
    async def test_unknown_action(self, dispatcher, store, bot):
        await complete_questionnaire(dispatcher)
        await dispatcher.feed_raw_update(callback_update(f"ban:{USER_ID}"))

        bot.answer_callback_query.assert_awaited_once_with("cbq-1", constants.CALLBACK_UNKNOWN_ACTION, show_alert=True)
        assert store.get(USER_ID) is not None

    @pytest.mark.asyncio
    async def test_incomplete_session_cannot_be_decided(self, dispatcher, store, bot):
        await dispatcher.feed_raw_update(message_update("/start"))
        await dispatcher.feed_raw_update(callback_update(f"approve:{USER_ID}"))

        bot.answer_callback_query.assert_awaited_once_with("cbq-1", constants.CALLBACK_NOT_COMPLETED, show_alert=True)
        assert store.get(USER_ID).step == SessionStep.AWAITING_PHONE

    @pytest.mark.asyncio
    async def test_approve_end_to_end(self, dispatcher, store, bot):
        await complete_questionnaire(dispatcher)
        await dispatcher.feed_raw_update(callback_update(f"approve:{USER_ID}", text="Application card"))

        bot.create_chat_invite_link.assert_awaited_once_with(CHANNEL_ID, expire_seconds=3600, member_limit=1)
        user_message = sent_to(bot, USER_ID)[-1]
        assert "https://t.me/+invite123" in user_message
        assert "1 hour" in user_message

        bot.edit_message_reply_markup.assert_awaited_once_with(REVIEWER_ID, 555, {"inline_keyboard": []})
        edit = bot.edit_message_text.call_args
        assert edit.args[:2] == (REVIEWER_ID, 555)
        assert edit.args[2] == f"Application card\n\n{constants.APPROVED_MARK}"
        bot.answer_callback_query.assert_awaited_once_with("cbq-1", constants.CALLBACK_APPROVED)
        assert store.get(USER_ID) is None

    @pytest.mark.asyncio
    async def test_reject_notifies_and_deletes(self, dispatcher, store, bot):
        await complete_questionnaire(dispatcher)
        await dispatcher.feed_raw_update(callback_update(f"reject:{USER_ID}"))

        assert sent_to(bot, USER_ID)[-1] == constants.REJECTED_USER_MESSAGE
        bot.create_chat_invite_link.assert_not_awaited()
        assert constants.REJECTED_MARK in bot.edit_message_text.call_args.args[2]
        bot.answer_callback_query.assert_awaited_once_with("cbq-1", constants.CALLBACK_REJECTED)
        assert store.get(USER_ID) is None

    @pytest.mark.asyncio
    async def test_platform_failure_keeps_session(self, dispatcher, store, bot):
        await complete_questionnaire(dispatcher)
        bot.create_chat_invite_link.side_effect = TelegramAPIError("createChatInviteLink", "not enough rights")

        await dispatcher.feed_raw_update(callback_update(f"approve:{USER_ID}"))

        bot.answer_callback_query.assert_awaited_once_with(
            "cbq-1", constants.CALLBACK_PROCESSING_ERROR, show_alert=True
        )
        assert store.get(USER_ID).step == SessionStep.COMPLETED

    @pytest.mark.asyncio
    async def test_failed_acknowledgement_after_decision(self, dispatcher, store, bot):
        await complete_questionnaire(dispatcher)
        bot.answer_callback_query.side_effect = TelegramAPIError("answerCallbackQuery", "query is too old")
        reviewer_messages_before = len(sent_to(bot, REVIEWER_ID))

        await dispatcher.feed_raw_update(callback_update(f"approve:{USER_ID}"))

        assert store.get(USER_ID) is None
        bot.answer_callback_query.assert_awaited_once_with("cbq-1", constants.CALLBACK_APPROVED)
        assert len(sent_to(bot, REVIEWER_ID)) == reviewer_messages_before
        assert constants.GENERIC_ERROR_MESSAGE not in sent_to(bot, USER_ID)


class TestReviewerCommands:

    @pytest.mark.asyncio
    async def test_approve_command(self, dispatcher, store, bot):
        await complete_questionnaire(dispatcher)
        await dispatcher.feed_raw_update(message_update(f"/approve {USER_ID}", user_id=REVIEWER_ID))

        bot.create_chat_invite_link.assert_awaited_once()
        assert "https://t.me/+invite123" in sent_to(bot, USER_ID)[-1]
        assert sent_to(bot, REVIEWER_ID)[-1] == constants.COMMAND_APPROVED_MESSAGE.format(user_id=USER_ID)
        assert store.get(USER_ID) is None

    @pytest.mark.asyncio
    async def test_deny_command_requires_reviewer(self, dispatcher, bot):
        await dispatcher.feed_raw_update(message_update(f"/deny {OTHER_USER_ID}"))

        assert sent_to(bot, USER_ID) == [constants.COMMAND_UNAUTHORIZED_MESSAGE]
        assert sent_to(bot, OTHER_USER_ID) == []

    @pytest.mark.asyncio
    async def test_command_usage(self, dispatcher, bot):
        await dispatcher.feed_raw_update(message_update("/deny", user_id=REVIEWER_ID))
        assert sent_to(bot, REVIEWER_ID) == [constants.COMMAND_USAGE_MESSAGE.format(command="deny")]

    @pytest.mark.asyncio
    async def test_malformed_user_id_shows_usage(self, dispatcher, bot):
        await dispatcher.feed_raw_update(message_update("/approve --5", user_id=REVIEWER_ID))

        assert sent_to(bot, REVIEWER_ID) == [constants.COMMAND_USAGE_MESSAGE.format(command="approve")]
        bot.create_chat_invite_link.assert_not_awaited()


class TestHelpAndRequest:

    @pytest.mark.asyncio
    async def test_help_for_user(self, dispatcher, bot):
        await dispatcher.feed_raw_update(message_update("/help"))
        assert sent_to(bot, USER_ID) == [constants.HELP_MESSAGE]

    @pytest.mark.asyncio
    async def test_help_for_reviewer_includes_admin_commands(self, dispatcher, bot):
        await dispatcher.feed_raw_update(message_update("/help", user_id=REVIEWER_ID))
        assert "/approve <user_id>" in sent_to(bot, REVIEWER_ID)[0]

    @pytest.mark.asyncio
    async def test_request_forwards_user_info(self, dispatcher, bot):
        await dispatcher.feed_raw_update(message_update("/request"))

        reviewer_text = sent_to(bot, REVIEWER_ID)[0]
        assert f"User ID: {USER_ID}" in reviewer_text
        assert "@jdoe" in reviewer_text
        assert sent_to(bot, USER_ID) == [constants.REQUEST_SUBMITTED_MESSAGE]

    @pytest.mark.asyncio
    async def test_request_failure_reported(self, dispatcher, bot):
        bot.send_message.side_effect = [TelegramAPIError("sendMessage", "blocked"), {"message_id": 2}]

        await dispatcher.feed_raw_update(message_update("/request"))

        assert bot.send_message.call_args.args == (USER_ID, constants.REQUEST_FAILED_MESSAGE)


class TestErrors:

    @pytest.mark.asyncio
    async def test_unexpected_error_answered_with_generic_message(self, dispatcher, bot):
        bot.send_message.side_effect = [RuntimeError("boom"), {"message_id": 2}]

        await dispatcher.feed_raw_update(message_update("/help"))

        assert bot.send_message.call_args.args == (USER_ID, constants.GENERIC_ERROR_MESSAGE)

    @pytest.mark.asyncio
    async def test_unsupported_update_ignored(self, dispatcher, bot):
        await dispatcher.feed_raw_update({"update_id": 1, "edited_message": {"message_id": 1}})
        bot.send_message.assert_not_awaited()
