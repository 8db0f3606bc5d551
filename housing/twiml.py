"""TwiML builders for the voice webhooks.

Two response shapes are used:

  continue: <Gather input="speech"> wrapping a <Say>, so Twilio speaks
             the question, captures the reply, and POSTs it to ``action``
  conclude: <Say> summary, <Say> closing, <Hangup/>
"""

from __future__ import annotations

from xml.etree.ElementTree import Element, SubElement, tostring

SPEECH_TIMEOUT = "auto"


def _render(response_el: Element) -> str:
    return tostring(response_el, encoding="unicode", xml_declaration=True)


def gather_response(prompt: str, action: str, after: str = "") -> str:
    """Speak ``prompt`` and capture the caller's next utterance.

    ``after`` is spoken only if the gather times out without speech,
    since Twilio then continues with the next verb.
    """
    response_el = Element("Response")
    gather_el = SubElement(response_el, "Gather")
    gather_el.set("input", "speech")
    gather_el.set("action", action)
    gather_el.set("method", "POST")
    gather_el.set("speechTimeout", SPEECH_TIMEOUT)
    say_el = SubElement(gather_el, "Say")
    say_el.text = prompt

    if after:
        SubElement(response_el, "Say").text = after
        # Route the silent turn back so the dialogue still advances
        redirect_el = SubElement(response_el, "Redirect")
        redirect_el.set("method", "POST")
        redirect_el.text = action

    return _render(response_el)


def hangup_response(*statements: str) -> str:
    """Speak each statement in order, then end the call."""
    response_el = Element("Response")
    for text in statements:
        if text:
            SubElement(response_el, "Say").text = text
    SubElement(response_el, "Hangup")
    return _render(response_el)
