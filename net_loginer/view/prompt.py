import io

import questionary
from PIL import Image

from net_loginer.view.console import console, QUESTIONARY_STYLE


def ask_verify_code(img_bytes: bytes) -> str:
    """Show the captcha in the system image viewer and read the code from the user."""
    console.print("\n[bold cyan]◆ Verify code[/bold cyan]  [dim](opening image...)[/dim]")
    image = Image.open(io.BytesIO(img_bytes))
    image.show()
    return (questionary.text("Enter verify code", style=QUESTIONARY_STYLE).unsafe_ask() or '').strip()
