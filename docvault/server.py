from dataclasses import dataclass
from functools import partial
from typing import Optional

from flask import (
    Flask,
    Response,
    current_app,
    flash,
    get_flashed_messages,
    redirect,
    render_template_string,
    request,
    url_for,
)

from docvault import content
from docvault.auth import current_gate, signed_in_required
from docvault.config import load_config
from docvault.credentials import CredentialStore
from docvault.documents import DocumentStore, FileDocumentStore
from docvault.errors import (
    DocumentNotFound,
    NotAuthenticated,
    UnsupportedType,
    ValidationError,
)


@dataclass
class Stores:
    documents: DocumentStore
    credentials: CredentialStore


def _stores() -> Stores:
    return current_app.extensions["docvault"]


def _page(body: str) -> str:
    return LAYOUT_HEAD + body + LAYOUT_FOOT


def _view(template: str, status: int = 200, **context):
    gate = current_gate()
    html = render_template_string(
        template,
        messages=get_flashed_messages(),
        signed_in=gate.is_signed_in(),
        username=gate.username,
        **context,
    )
    return html, status


def markdown_page(html: str, filename: str, messages: Optional[list] = None) -> str:
    if messages is None:
        messages = get_flashed_messages()
    gate = current_gate()
    return render_template_string(
        DOCUMENT_TEMPLATE,
        html=html,
        filename=filename,
        messages=messages,
        signed_in=gate.is_signed_in(),
        username=gate.username,
    )


def _render(filename: str, data: bytes, layout=markdown_page) -> content.Rendered:
    return content.render(filename, data, layout=layout,
                          extensions=current_app.config["MARKDOWN_EXTENSIONS"])


IMAGE_KINDS = frozenset({content.ContentKind.JPEG, content.ContentKind.PNG})


def is_editable(filename: str) -> bool:
    try:
        return content.kind_for(filename) not in IMAGE_KINDS
    except UnsupportedType:
        return True


def _refuse_edit(filename):
    flash(f"{filename} cannot be edited.")
    return redirect(url_for("index"))


def index():
    files = sorted(_stores().documents.list())
    return _view(INDEX_TEMPLATE, files=files, editable={f for f in files if is_editable(f)})


def signup_form():
    return _view(SIGNUP_TEMPLATE)


def signup():
    username = request.form.get("username", "").strip()
    password = request.form.get("password", "")
    try:
        _stores().credentials.register(username, password)
    except ValidationError as e:
        current_app.logger.info("signup rejected for %r: %s", username, e)
        flash(str(e))
        return _view(SIGNUP_TEMPLATE, 422, form_username=username)
    current_app.logger.info("registered user %r", username)
    flash(f"{username} signup complete. You can now sign in.")
    return redirect(url_for("index"))


def signin_form():
    return _view(SIGNIN_TEMPLATE)


def signin():
    username = request.form.get("username", "")
    if _stores().credentials.verify(username, request.form.get("password", "")):
        current_gate().sign_in(username)
        current_app.logger.info("%r signed in", username)
        flash("Welcome!")
        return redirect(url_for("index"))
    current_app.logger.info("failed signin for %r", username)
    flash("Invalid credentials")
    return _view(SIGNIN_TEMPLATE, 422, form_username=username)


def signout():
    current_gate().sign_out()
    flash("You have been signed out.")
    return redirect(url_for("index"))


@signed_in_required
def new_document():
    return _view(NEW_TEMPLATE)


@signed_in_required
def create_document():
    filename = request.form.get("filename", "").strip()
    try:
        _stores().documents.create(filename)
    except ValidationError as e:
        flash(str(e))
        return _view(NEW_TEMPLATE, 422, filename=filename)
    current_app.logger.info("created %s", filename)
    flash(f"{filename} has been created.")
    return redirect(url_for("index"))


def show_document(filename):
    documents = _stores().documents
    if not documents.exists(filename):
        flash(f"{filename} does not exist.")
        return redirect(url_for("index"))
    try:
        rendered = _render(filename, documents.read(filename))
    except (DocumentNotFound, UnsupportedType) as e:
        flash(str(e))
        return redirect(url_for("index"))
    return Response(rendered.payload, mimetype=rendered.media_type)


@signed_in_required
def edit_document(filename):
    if not is_editable(filename):
        return _refuse_edit(filename)
    try:
        data = _stores().documents.read(filename)
    except DocumentNotFound as e:
        flash(str(e))
        return redirect(url_for("index"))
    return _view(EDIT_TEMPLATE, filename=filename,
                 content=data.decode("utf-8", errors="replace"))


@signed_in_required
def update_document(filename):
    if not is_editable(filename):
        return _refuse_edit(filename)
    text = request.form.get("content", "")
    try:
        _stores().documents.write(filename, text.encode("utf-8"))
    except ValidationError as e:
        flash(str(e))
        return redirect(url_for("index"))
    current_app.logger.info("updated %s (%d bytes)", filename, len(text))
    flash(f"{filename} has been updated.")
    return redirect(url_for("index"))


@signed_in_required
def delete_document(filename):
    try:
        _stores().documents.delete(filename)
    except DocumentNotFound as e:
        flash(str(e))
        return redirect(url_for("index"))
    current_app.logger.info("deleted %s", filename)
    flash(f"{filename} has been deleted.")
    return redirect(url_for("index"))


@signed_in_required
def duplicate_document(filename):
    # the copy gets the page as a visitor would see it, minus pending messages
    layout = partial(markdown_page, messages=[])
    try:
        new_name = _stores().documents.duplicate(
            filename, lambda name, data: _render(name, data, layout).payload)
    except (DocumentNotFound, UnsupportedType) as e:
        flash(str(e))
        return redirect(url_for("index"))
    current_app.logger.info("duplicated %s as %s", filename, new_name)
    flash(f"{filename} has been duplicated.")
    return redirect(url_for("index"))


def _not_authenticated(e: NotAuthenticated):
    flash(str(e))
    return redirect(url_for("index"))


def create_app(overrides: Optional[dict] = None,
               documents: Optional[DocumentStore] = None,
               credentials: Optional[CredentialStore] = None) -> Flask:
    cfg = load_config(overrides=overrides)

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=cfg["secret_key"],
        MARKDOWN_EXTENSIONS=list(cfg["markdown_extensions"]),
        DOCVAULT=cfg,
    )
    if documents is None:
        documents = FileDocumentStore(cfg["data_dir"])
    if credentials is None:
        credentials = CredentialStore(cfg["credentials_path"], rounds=cfg["bcrypt_rounds"])
    app.extensions["docvault"] = Stores(documents=documents, credentials=credentials)

    app.add_url_rule("/", "index", index)
    app.add_url_rule("/users/signup", "signup_form", signup_form)
    app.add_url_rule("/users/signup", "signup", signup, methods=["POST"])
    app.add_url_rule("/users/signin", "signin_form", signin_form)
    app.add_url_rule("/users/signin", "signin", signin, methods=["POST"])
    app.add_url_rule("/users/signout", "signout", signout, methods=["POST"])
    app.add_url_rule("/new", "new_document", new_document)
    app.add_url_rule("/create", "create_document", create_document, methods=["POST"])
    app.add_url_rule("/<filename>", "show_document", show_document)
    app.add_url_rule("/<filename>", "update_document", update_document, methods=["POST"])
    app.add_url_rule("/<filename>/edit", "edit_document", edit_document)
    app.add_url_rule("/<filename>/delete", "delete_document", delete_document, methods=["POST"])
    app.add_url_rule("/<filename>/duplicate", "duplicate_document", duplicate_document,
                     methods=["POST"])
    app.register_error_handler(NotAuthenticated, _not_authenticated)
    return app


LAYOUT_HEAD = r"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>DocVault</title>
<style>
*, *::before, *::after { box-sizing: border-box; }
:root {
  --bg-primary: #1e1e1e;
  --bg-secondary: #252526;
  --bg-hover: #2a2d2e;
  --text: #dcddde;
  --text-muted: #999;
  --accent: #7f6df2;
  --accent-hover: #9d8ff5;
  --danger: #e5534b;
  --font: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
  --mono: "JetBrains Mono", "Fira Code", Consolas, monospace;
}
html, body { margin: 0; background: var(--bg-primary); color: var(--text); font-family: var(--font); font-size: 16px; line-height: 1.6; }
main { max-width: 760px; margin: 0 auto; padding: 24px; }
a { color: var(--accent); text-decoration: none; }
a:hover { color: var(--accent-hover); }
.message { background: var(--bg-secondary); border-left: 3px solid var(--accent); padding: 8px 14px; margin-bottom: 16px; }
.file-list { list-style: none; padding: 0; }
.file-list li { display: flex; align-items: center; gap: 10px; padding: 6px 8px; border-radius: 6px; }
.file-list li:hover { background: var(--bg-hover); }
.file-list .name { flex: 1; }
form.inline { display: inline; margin: 0; }
button { background: var(--bg-secondary); color: var(--text); border: 1px solid #3a3a3a; border-radius: 4px; padding: 3px 10px; cursor: pointer; font: inherit; font-size: 14px; }
button:hover { border-color: var(--accent); }
button.danger:hover { border-color: var(--danger); color: var(--danger); }
label { display: block; margin: 10px 0 4px; color: var(--text-muted); }
input[type=text], input[type=password] { background: var(--bg-secondary); color: var(--text); border: 1px solid #3a3a3a; border-radius: 4px; padding: 6px 8px; font: inherit; width: 100%; max-width: 360px; }
textarea { width: 100%; min-height: 420px; background: var(--bg-secondary); color: var(--text); border: 1px solid #3a3a3a; border-radius: 4px; padding: 10px; font-family: var(--mono); font-size: 14px; }
.user-status { color: var(--text-muted); font-size: 14px; margin-top: 32px; }
pre, code { font-family: var(--mono); background: var(--bg-secondary); border-radius: 4px; }
pre { padding: 12px; overflow-x: auto; }
</style>
</head>
<body>
<main>
{% for message in messages %}<div class="message">{{ message }}</div>{% endfor %}
"""

LAYOUT_FOOT = r"""
<p class="user-status">
{% if signed_in %}
  Signed in as {{ username }}.
  <form class="inline" method="post" action="{{ url_for('signout') }}"><button type="submit">Sign Out</button></form>
{% else %}
  <a href="{{ url_for('signin_form') }}">Sign In</a> &middot; <a href="{{ url_for('signup_form') }}">Sign Up</a>
{% endif %}
</p>
</main>
</body>
</html>
"""

INDEX_TEMPLATE = _page(r"""
<ul class="file-list">
{% for file in files %}
  <li>
    <a class="name" href="{{ url_for('show_document', filename=file) }}">{{ file }}</a>
    {% if signed_in %}
    {% if file in editable %}<a href="{{ url_for('edit_document', filename=file) }}">edit</a>{% endif %}
    <form class="inline" method="post" action="{{ url_for('duplicate_document', filename=file) }}"><button type="submit">duplicate</button></form>
    <form class="inline" method="post" action="{{ url_for('delete_document', filename=file) }}"><button class="danger" type="submit">delete</button></form>
    {% endif %}
  </li>
{% endfor %}
</ul>
{% if signed_in %}<p><a href="{{ url_for('new_document') }}">New Document</a></p>{% endif %}
""")

NEW_TEMPLATE = _page(r"""
<form method="post" action="{{ url_for('create_document') }}">
  <label for="filename">Add a new document:</label>
  <input type="text" id="filename" name="filename" value="{{ filename or '' }}">
  <button type="submit">Create</button>
</form>
""")

EDIT_TEMPLATE = _page(r"""
<form method="post" action="{{ url_for('update_document', filename=filename) }}">
  <label for="content">Edit content of {{ filename }}:</label>
  <textarea id="content" name="content">{{ content }}</textarea>
  <button type="submit">Save Changes</button>
</form>
""")

SIGNIN_TEMPLATE = _page(r"""
<form method="post" action="{{ url_for('signin') }}">
  <label for="username">Username</label>
  <input type="text" id="username" name="username" value="{{ form_username or '' }}">
  <label for="password">Password</label>
  <input type="password" id="password" name="password">
  <p><button type="submit">Sign In</button></p>
</form>
""")

SIGNUP_TEMPLATE = _page(r"""
<form method="post" action="{{ url_for('signup') }}">
  <label for="username">Choose a username</label>
  <input type="text" id="username" name="username" value="{{ form_username or '' }}">
  <label for="password">Choose a password</label>
  <input type="password" id="password" name="password">
  <p><button type="submit">Sign Up</button></p>
</form>
""")

DOCUMENT_TEMPLATE = _page(r"""
<article class="document">
{{ html|safe }}
</article>
<p><a href="{{ url_for('index') }}">&larr; All documents</a></p>
""")


def main():
    app = create_app()
    cfg = app.config["DOCVAULT"]
    print(f"Serving documents: {cfg['data_dir']}")
    print(f"Credentials file:  {cfg['credentials_path']}")
    print(f"Open http://{cfg['host']}:{cfg['port']}")
    app.run(host=cfg["host"], port=cfg["port"])


if __name__ == "__main__":
    main()
