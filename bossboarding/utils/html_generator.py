import html
import json
from typing import Dict, Any, List, Tuple


# (form field, label, input type) per wizard step; list-valued steps use a JSON editor
STEP_FIELDS: Dict[str, List[Tuple[str, str, str]]] = {
    "general": [
        ("businessName", "Business Name", "text"),
        ("ownerName", "Owner Name", "text"),
        ("email", "Email", "email"),
        ("phone", "Phone", "tel"),
        ("password", "Portal Password", "password"),
        ("confirmPassword", "Confirm Password", "password"),
    ],
    "location": [
        ("locationName", "Location Name", "text"),
        ("locationPhone", "Location Phone", "tel"),
        ("locationAddress", "Address", "text"),
        ("locationCity", "City", "text"),
        ("locationState", "State", "text"),
        ("locationZip", "ZIP", "text"),
        ("isStaffed", "Staffed location", "checkbox"),
        ("holidaysClosed", "Holidays Closed (comma separated)", "text"),
    ],
    "machines": [("machines", "Machines", "json")],
    "employees": [("employees", "Employees", "json")],
    "shipping": [
        ("shippingSameAsLocation", "Ship to the location address", "checkbox"),
        ("shippingAddress", "Shipping Address", "text"),
        ("shippingCity", "City", "text"),
        ("shippingState", "State", "text"),
        ("shippingZip", "ZIP", "text"),
        ("shippingNotes", "Delivery Notes", "text"),
    ],
    "kiosk": [
        ("hasKiosk", "We want a kiosk", "checkbox"),
        ("kiosks", "Kiosks", "json"),
    ],
    "pci": [
        ("pciRepresentativeName", "Representative Name", "text"),
        ("pciCompanyName", "Company Name", "text"),
        ("pciTitle", "Title", "text"),
        ("pciConsent", "I consent to PCI compliance verification", "checkbox"),
    ],
}


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(title)}</title>
    <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-gray-50 antialiased text-gray-900">
    <div class="w-full max-w-2xl mx-auto min-h-screen p-4 sm:p-6 md:p-8">
        {body}
    </div>
</body>
</html>"""


def generate_message_html(title: str, message: str) -> str:
    """Full-page message for invalid links and completed onboardings"""
    return _page(title, f"""
        <div class="mt-24 bg-white rounded-lg shadow p-8 text-center">
            <h1 class="text-2xl font-extrabold tracking-tight mb-3">{html.escape(title)}</h1>
            <p class="text-gray-600">{html.escape(message)}</p>
        </div>""")


def _field_html(field: str, label: str, input_type: str, form_data: Dict[str, Any]) -> str:
    value = form_data.get(field)
    name = html.escape(field)
    label = html.escape(label)

    if input_type == "checkbox":
        checked = " checked" if value else ""
        return f"""
            <label class="flex items-center gap-2 text-sm font-semibold">
                <input type="checkbox" data-field="{name}" data-kind="checkbox"{checked}> {label}
            </label>"""

    if input_type == "json":
        text = html.escape(json.dumps(value or [], indent=2))
        return f"""
            <label class="block text-[10px] font-bold text-gray-400 uppercase tracking-widest mb-1">{label}</label>
            <textarea data-field="{name}" data-kind="json" rows="8"
                class="w-full border border-gray-200 rounded p-2 font-mono text-xs">{text}</textarea>"""

    # Password fields are never pre-filled
    shown = "" if input_type == "password" or value is None else html.escape(str(value))
    return f"""
            <label class="block text-[10px] font-bold text-gray-400 uppercase tracking-widest mb-1">{label}</label>
            <input type="{input_type}" data-field="{name}" value="{shown}"
                class="w-full border border-gray-200 rounded px-3 py-2 text-sm">"""


def generate_onboarding_html(session: Dict[str, Any], business_name: str) -> str:
    """
    Render the wizard page for an open onboarding.

    ``session`` is the camelCase wizard session payload; navigation posts
    back to the onboarding API and reloads the page.
    """
    token = session["onboardingToken"]
    step_id = session["stepId"]

    indicator = ""
    for step in session["steps"]:
        if step["isCurrent"]:
            style = "bg-gray-900 text-white"
        elif step["reachable"]:
            style = "bg-white text-gray-900 border border-gray-900 cursor-pointer"
        else:
            style = "bg-gray-100 text-gray-400"
        indicator += f"""
            <button type="button" data-goto="{step['index']}" {'' if step['reachable'] else 'disabled'}
                class="px-2 py-1 rounded text-[10px] font-bold uppercase tracking-wider {style}">{html.escape(step['name'])}</button>"""

    current = next(s for s in session["steps"] if s["isCurrent"])
    fields = "".join(
        f'<div class="mb-4">{_field_html(field, label, kind, session["formData"])}</div>'
        for field, label, kind in STEP_FIELDS.get(step_id, [])
    )
    if not fields:
        fields = '<p class="text-sm text-gray-500">Nothing to fill in here. Continue when ready.</p>'

    missing = ""
    if session.get("missingFields"):
        missing = f"""
            <p class="text-xs text-red-600 mb-4">Required: {html.escape(', '.join(session['missingFields']))}</p>"""

    is_review = step_id == "review"
    primary = "Submit" if is_review else "Continue"
    primary_action = "submit" if is_review else "next"

    body = f"""
        <div class="border-b border-gray-900 pb-6 mb-6">
            <p class="text-[10px] font-bold text-gray-400 uppercase tracking-widest">Onboarding</p>
            <h1 class="text-2xl font-extrabold tracking-tight uppercase">{html.escape(business_name)}</h1>
            <p class="text-xs text-gray-500 mt-1">Step {session['currentStep'] + 1} of {session['totalSteps']}</p>
        </div>
        <div class="flex flex-wrap gap-1 mb-6">{indicator}</div>
        <div class="bg-white rounded-lg shadow p-6">
            <h2 class="text-lg font-extrabold">{html.escape(current['name'])}</h2>
            <p class="text-sm text-gray-500 mb-6">{html.escape(current['description'])}</p>
            {missing}
            <form id="wizard">{fields}</form>
            <p id="status" class="text-xs text-gray-500 h-4 mb-2"></p>
            <div class="flex justify-between mt-4">
                <button type="button" data-action="back" class="px-4 py-2 rounded border text-sm font-bold">Back</button>
                <button type="button" data-action="progress" class="px-4 py-2 rounded border text-sm font-bold">Save Progress</button>
                <button type="button" data-action="{primary_action}" class="px-4 py-2 rounded bg-gray-900 text-white text-sm font-bold">{primary}</button>
            </div>
        </div>
        <script>
            const base = "/api/onboarding/{html.escape(token)}";
            const status = document.getElementById("status");
            function collect() {{
                const data = {{}};
                for (const el of document.querySelectorAll("[data-field]")) {{
                    const kind = el.dataset.kind;
                    if (kind === "checkbox") data[el.dataset.field] = el.checked;
                    else if (kind === "json") {{ try {{ data[el.dataset.field] = JSON.parse(el.value || "[]"); }} catch (e) {{}} }}
                    else if (el.type !== "password" || el.value) data[el.dataset.field] = el.value;
                }}
                return data;
            }}
            async function post(action, extra) {{
                const res = await fetch(base + "/" + action, {{
                    method: "POST",
                    headers: {{"Content-Type": "application/json"}},
                    body: JSON.stringify(Object.assign({{formData: collect()}}, extra || {{}})),
                }});
                const body = await res.json().catch(() => ({{}}));
                if (!res.ok) {{ status.textContent = body.error || "Something went wrong"; return; }}
                if (action === "progress") {{ status.textContent = "Progress saved"; return; }}
                window.location.reload();
            }}
            for (const el of document.querySelectorAll("[data-action]")) el.addEventListener("click", () => post(el.dataset.action));
            for (const el of document.querySelectorAll("[data-goto]")) el.addEventListener("click", () => post("goto", {{step: Number(el.dataset.goto)}}));
        </script>"""

    return _page(f"Onboarding - {business_name}", body)
