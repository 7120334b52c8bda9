"""Console confirmation sender for local development.

Prints the confirmation link to stdout instead of sending an email.
"""

from fleetgate.core.interfaces import ConfirmationSender


class ConsoleConfirmationSender:
    """Print email confirmation links to the server console."""

    async def send_confirmation(self, email: str, confirm_url: str) -> None:
        print("\n" + "=" * 70, flush=True)
        print("[EMAIL CONFIRMATION] Confirmation link generated", flush=True)
        print(f"  Email: {email}", flush=True)
        print(f"  Link:  {confirm_url}", flush=True)
        print("=" * 70 + "\n", flush=True)


_sender: ConfirmationSender = ConsoleConfirmationSender()
