import logging
from typing import Optional

from files_manager.errors import FilesManagerError, NotFoundError, ValidationError
from files_manager.modules.mail import MailSender
from files_manager.modules.queue import Job
from files_manager.modules.storage import UserStore

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to Files Manager"
WELCOME_BODY = "".join([
    "<div>",
    "<h3>Hello,</h3>",
    "Welcome to <strong>Files Manager</strong>, ",
    "a simple file management API. ",
    "We hope it meets your needs.",
    "</div>",
])


class WelcomeEmailJobHandler:
    """Sends the welcome email for a newly registered user."""

    def __init__(self, user_store: UserStore, mail_sender: MailSender):
        self.user_store = user_store
        self.mail_sender = mail_sender

    async def __call__(self, job: Job) -> Optional[Exception]:
        user_id = job.payload.get("userId")
        if not user_id:
            logger.error(f"Job {job.id}: missing userId")
            return ValidationError("Missing userId")

        try:
            user = await self.user_store.find_by_id(user_id)
            if user is None:
                logger.error(f"Job {job.id}: user {user_id} not found")
                return NotFoundError("User not found")

            logger.info(f"Sending welcome email to {user.email}")
            # Awaited so relay failures are retried by the queue
            await self.mail_sender.send(user.email, WELCOME_SUBJECT, WELCOME_BODY)
        except FilesManagerError as e:
            return e

        return None
