"""VulnLab: reference targets for webinject.

Every vulnerability class comes twice: a deliberately vulnerable
implementation and a prevented one.  The plain functions are used
directly by the generator tests; the Flask routes expose the same code
over HTTP for end-to-end scans.
"""

import html
import re
import xml.etree.ElementTree as ET

from flask import Flask, request, jsonify, make_response

app = Flask(__name__)


# ── XPath login ─────────────────────────────────────────────────

USERS = ET.fromstring("""
<users>
  <user><name>admin</name><password>s3cr3t!</password><role>admin</role></user>
  <user><name>alice</name><password>wonderland</password><role>user</role></user>
</users>
""")

INJECTED = "injected"
ACCEPTED = "accepted"
DENIED = "denied"

_LITERAL = re.compile(r"'[^']*'")


def xpath_query(user: str, password: str) -> str:
    return f"//user[name/text()='{user}' and password/text()='{password}']"


def _shape(query: str) -> str:
    return _LITERAL.sub("L", query)


def _lookup(user: str, password: str) -> str:
    for u in USERS.iter("user"):
        if u.findtext("name") == user and u.findtext("password") == password:
            return ACCEPTED
    return DENIED


def xpath_vulnerable(user: str, password: str) -> str:
    """String-built query: any input that changes its shape is evaluated as XPath."""
    query = xpath_query(user, password)
    if _shape(query) != _shape(xpath_query("", "")):
        return INJECTED
    return _lookup(user, password)


def xpath_prevented(user: str, password: str) -> str:
    """Input only ever compared as data."""
    return _lookup(user, password)


# ── HTML rendering ──────────────────────────────────────────────

def html_vulnerable(text: str):
    return f"<div class=\"result\"><p>Search results for: {text}</p></div>"


def html_prevented(text: str):
    return f"<div class=\"result\"><p>Search results for: {html.escape(text)}</p></div>"


# ══════════════════════════════════════════════════════════════════
#  Related messages API: JSON -> XML deserialization
# ══════════════════════════════════════════════════════════════════

@app.route("/api/monitor/relatedmessages", methods=["GET", "PUT"])
def related_messages():
    # VULNERABLE: anything goes, echoed back as a document
    msg_id = request.args.get("id", "")
    direction = request.args.get("direction", "")
    return jsonify({"id": msg_id, "direction": direction, "messages": []})


@app.route("/safe/api/monitor/relatedmessages", methods=["GET", "PUT"])
def related_messages_safe():
    msg_id = request.args.get("id", "")
    direction = request.args.get("direction", "asc")
    if not msg_id.isdigit() or direction not in ("asc", "desc"):
        return make_response("", 400)
    return make_response("", 204)


# ══════════════════════════════════════════════════════════════════
#  XSS: reflected cross-site scripting
# ══════════════════════════════════════════════════════════════════

@app.route("/xss", methods=["GET", "POST"])
def xss():
    return html_vulnerable(request.values.get("q", "test"))


@app.route("/safe/xss", methods=["GET", "POST"])
def xss_safe():
    return html_prevented(request.values.get("q", "test"))


# ══════════════════════════════════════════════════════════════════
#  XPath login
# ══════════════════════════════════════════════════════════════════

def _login(check):
    user = request.values.get("user", "")
    password = request.values.get("password", "")
    outcome = check(user, password)
    if outcome == INJECTED:
        # VULNERABLE: evaluator error leaks into the page
        return make_response(f"XPathException: Invalid predicate in {xpath_query(user, password)}", 500)
    if outcome == ACCEPTED:
        return make_response("Welcome", 200)
    return make_response("Invalid credentials", 401)


@app.route("/xpath/login", methods=["GET", "POST"])
def xpath_login():
    return _login(xpath_vulnerable)


@app.route("/safe/xpath/login", methods=["GET", "POST"])
def xpath_login_safe():
    return _login(xpath_prevented)


# ══════════════════════════════════════════════════════════════════
#  Main
# ══════════════════════════════════════════════════════════════════

if __name__ == "__main__":
    print("\n  🔓 VulnLab starting on http://127.0.0.1:5000\n")
    app.run(host="127.0.0.1", port=5000, debug=True)
