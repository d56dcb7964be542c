"""Instruction templates handed to the chat-completion model.

The refinement pipeline sends every chat call as two role-tagged messages:
a fixed ``system`` instruction taken from this module and a ``user`` message
carrying the request data.  The instructions are constants rather than
configuration because they define the behaviour of each pipeline stage;
callers can only replace the single-pass enrichment instruction, per request.

Templates
---------
ANALYZE_SYSTEM_PROMPT
    Extraction rules plus worked examples.  The model is asked to answer with
    a single JSON object whose ``subjects`` key is a non-empty list.
SYNTHESIZE_SYSTEM_PROMPT
    Two-pass enrichment: turn an element map into one descriptive sentence.
SYNTHESIZE_USER_TEMPLATE
    Wraps the compact JSON element map for the synthesis call.
ENRICH_SYSTEM_PROMPT
    Single-pass enrichment default: translate and lightly elaborate a raw
    prompt into one English sentence.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Element vocabulary.
# The analysis instruction lists these categories; the model may add others.
# ---------------------------------------------------------------------------

ELEMENT_CATEGORIES: tuple[str, ...] = (
    "subjects",
    "setting",
    "activity",
    "clothing",
    "objects",
    "decor",
    "mood",
    "time_of_day",
    "weather",
    "ability",
    "companion",
    "size",
    "quantity",
)

# Words the enrichment instructions ban.  Listed once so the instruction text
# and any contract checks agree.
FORBIDDEN_COLOUR_WORDS: tuple[str, ...] = (
    "red",
    "blue",
    "green",
    "yellow",
    "orange",
    "purple",
    "pink",
    "brown",
    "black",
    "white",
    "grey",
    "gray",
    "golden",
    "silver",
)

_FORBIDDEN_LIST = ", ".join(FORBIDDEN_COLOUR_WORDS)

# ---------------------------------------------------------------------------
# Pass 1: analysis.
# ---------------------------------------------------------------------------

ANALYZE_SYSTEM_PROMPT = (
    "You extract the visual elements of an illustration request. The request may be "
    "written in any language; always answer in English.\n"
    "\n"
    "Reply with ONE JSON object and nothing else. Keys:\n"
    '- "subjects": REQUIRED, a non-empty list of the characters, animals or things '
    "the picture is about, each as a short English noun phrase.\n"
    '- "setting", "activity", "clothing", "objects", "decor": ALWAYS present, '
    "null when the request does not mention them.\n"
    '- "mood", "time_of_day", "weather", "ability", "companion", "size", "quantity": '
    "include only when the request mentions them.\n"
    "- Any other element the request clearly asks for may get its own short key.\n"
    "\n"
    "Rules:\n"
    "- Translate every value to English.\n"
    "- Never invent elements that the request does not mention.\n"
    "- Use a list when a category holds several values, a string otherwise.\n"
    "\n"
    "Examples:\n"
    'Request: "un lapin"\n'
    '{"subjects":["rabbit"],"setting":null,"activity":null,"clothing":null,'
    '"objects":null,"decor":null}\n'
    "\n"
    'Request: "un chat qui joue du piano dans un salon"\n'
    '{"subjects":["cat"],"setting":"living room","activity":"playing the piano",'
    '"clothing":null,"objects":["piano"],"decor":null}\n'
    "\n"
    'Request: "deux dragons minuscules qui volent sous la pluie la nuit"\n'
    '{"subjects":["dragon"],"setting":null,"activity":"flying","clothing":null,'
    '"objects":null,"decor":null,"size":"tiny","quantity":2,"weather":"rain",'
    '"time_of_day":"night"}\n'
    "\n"
    'Request: "une princesse avec une couronne et son chien"\n'
    '{"subjects":["princess"],"setting":null,"activity":null,"clothing":["crown"],'
    '"objects":null,"decor":null,"companion":"dog"}'
)

# ---------------------------------------------------------------------------
# Pass 2: synthesis from an element map.
# ---------------------------------------------------------------------------

SYNTHESIZE_SYSTEM_PROMPT = (
    "You write the description of an illustration from a JSON list of its elements.\n"
    "\n"
    "Rules:\n"
    "- Use EVERY element given. Null elements are simply absent.\n"
    "- Add exactly one emotion to the main subject (happy, curious, proud, calm...).\n"
    f"- Never use colour words ({_FORBIDDEN_LIST}) and never describe textures or "
    "materials.\n"
    "- Never add characters, objects or places that are not in the elements.\n"
    "- Write ONE English sentence and nothing else: no quotes, no preamble.\n"
    "\n"
    "Examples:\n"
    'Elements: {"subjects":["rabbit"],"setting":null,"activity":null,"clothing":null,'
    '"objects":null,"decor":null}\n'
    "A happy rabbit sitting up with its ears raised.\n"
    "\n"
    'Elements: {"subjects":["cat"],"setting":"living room","activity":"playing the piano",'
    '"clothing":null,"objects":["piano"],"decor":null}\n'
    "A proud cat playing the piano in a cosy living room.\n"
    "\n"
    'Elements: {"subjects":["dragon"],"setting":null,"activity":"flying","clothing":null,'
    '"objects":null,"decor":null,"size":"tiny","quantity":2,"weather":"rain",'
    '"time_of_day":"night"}\n'
    "Two tiny curious dragons flying through the rain at night."
)

SYNTHESIZE_USER_TEMPLATE = "Elements: {elements}"

# ---------------------------------------------------------------------------
# Single pass: translate and elaborate a raw prompt.
# ---------------------------------------------------------------------------

ENRICH_SYSTEM_PROMPT = (
    "You turn a short illustration request, written in any language, into one "
    "English sentence describing the picture.\n"
    "\n"
    "Decide first:\n"
    "- If the request already names a setting, clothing, pose or activity, keep "
    "those details exactly, only translated. Do not replace them with a scene of "
    "your own.\n"
    "- Only when the request names nothing but the subject, add a simple pose or "
    "activity and a simple place that suit it.\n"
    "\n"
    "Rules:\n"
    "- Add one emotion for the main subject.\n"
    f"- Never use colour words ({_FORBIDDEN_LIST}) and never describe textures or "
    "materials.\n"
    "- ONE sentence only.\n"
    "- Respond only in English, with the sentence and nothing else.\n"
    "\n"
    "Examples:\n"
    'Request: "un chat"\n'
    "A curious cat sitting on a windowsill, watching the garden.\n"
    "\n"
    'Request: "une sorcière en robe longue qui danse dans la forêt"\n'
    "A joyful witch in a long dress dancing in the forest."
)
