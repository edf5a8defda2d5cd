"""Drive a local gateway through a short conversation.

    python scripts/simulate_user.py "hello" "symptoms dengue"

Replies go out through the WhatsApp client, so with no Meta credentials
configured only the gateway logs show what the bot answered.
"""
import sys
import time
import uuid

import httpx

GATEWAY_URL = "http://localhost:3000"
DEFAULT_SCRIPT = [
    "hello",
    "symptoms dengue",
    "set location Pune",
    "subscribe",
    "add child Asha 2023-01-15",
]


def webhook_event(sender: str, text: str) -> dict:
    message = {
        "from": sender,
        "id": f"wamid.{uuid.uuid4().hex}",
        "timestamp": str(int(time.time())),
        "type": "text",
        "text": {"body": text},
    }
    return {
        "object": "whatsapp_business_account",
        "entry": [{
            "id": "SIMULATED_WABA",
            "changes": [{
                "field": "messages",
                "value": {"messaging_product": "whatsapp", "messages": [message]},
            }],
        }],
    }


def main(lines: list[str]) -> None:
    sender = f"91{uuid.uuid4().int % 10**10:010d}"
    with httpx.Client(base_url=GATEWAY_URL, timeout=10.0) as client:
        for line in lines:
            res = client.post("/webhook", json=webhook_event(sender, line))
            print(f"> {line!r} -> {res.status_code} {res.text}")
            time.sleep(1)
        print("health:", client.get("/health").json())


if __name__ == "__main__":
    main(sys.argv[1:] or DEFAULT_SCRIPT)
