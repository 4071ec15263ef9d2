"""Dashboard HTML with inline CSS and vanilla JS."""

from datetime import datetime
from html import escape

from gitlab_dashboard.models import Dashboard, Notification, WorkItem

_STYLE = """
  :root {
    --bg: #f6f7fb; --surface: #ffffff; --surface-2: #f2f4f8; --border: #dbe1ea;
    --text: #0b1220; --text-muted: #566173; --accent: #0b63ff;
    --success: #22c55e; --failed: #ef4444; --running: #3b82f6;
  }
  @media (prefers-color-scheme: dark) {
    :root {
      --bg: #0d1117; --surface: #161b22; --surface-2: #11161d; --border: #30363d;
      --text: #e6edf3; --text-muted: #8b949e; --accent: #58a6ff;
    }
  }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.5; font-size: 15px; }
  a { color: var(--accent); text-decoration: none; }
  a:hover { text-decoration: underline; }
  .container { max-width: 1100px; margin: 0 auto; padding: 24px 16px; }

  /* Header */
  header { display: flex; justify-content: space-between; align-items: center;
           padding-bottom: 16px; border-bottom: 1px solid var(--border); margin-bottom: 8px; }
  header h1 { font-size: 20px; font-weight: 600; }
  .topline { font-size: 12px; color: var(--text-muted); margin-bottom: 20px; }

  /* Layout */
  .layout { display: grid; grid-template-columns: 280px 1fr; gap: 16px; }
  @media (max-width: 860px) { .layout { grid-template-columns: 1fr; } }
  .sidebar { background: var(--surface); border: 1px solid var(--border); border-radius: 8px;
             padding: 14px; height: fit-content; }
  .sidebar h2, .section h2 { font-size: 15px; color: var(--text-muted); margin-bottom: 10px; }
  .section { margin-bottom: 26px; }
  .list { list-style: none; display: flex; flex-direction: column; gap: 8px; }
  .list li a { color: var(--text); }

  /* Cards */
  .grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(320px, 1fr)); gap: 12px; }
  .card { background: var(--surface); border: 1px solid var(--border); border-radius: 8px; padding: 14px; }
  .card .title { font-weight: 600; margin-bottom: 6px; }
  .card .title a { color: var(--text); }
  .meta { display: flex; flex-wrap: wrap; gap: 8px; align-items: center; font-size: 12px; color: var(--text-muted); }
  .badge { display: inline-block; padding: 2px 8px; border-radius: 12px; font-size: 11px;
           border: 1px solid var(--border); background: var(--surface-2); color: var(--text); }
  .small { font-size: 12px; color: var(--text-muted); }
  .empty { font-size: 13px; color: var(--text-muted); padding: 10px; border: 1px dashed var(--border);
           border-radius: 8px; background: var(--surface-2); }

  /* Pipeline dots */
  .pipe { display: inline-flex; align-items: center; }
  .dot { display: inline-block; width: 10px; height: 10px; border-radius: 50%; background: var(--running); }
  .dot[data-status="success"] { background: var(--success); }
  .dot[data-status="failed"] { background: var(--failed); }
  .dot[data-status="canceled"], .dot[data-status="skipped"] { background: var(--text-muted); }
  footer { margin-top: 28px; font-size: 12px; color: var(--text-muted); }
"""

_SCRIPT = """
function timeago(dt) {
  const rtf = new Intl.RelativeTimeFormat(navigator.language || 'en', {numeric: 'auto'});
  const diff = (new Date(dt) - new Date()) / 1000;
  const abs = Math.abs(diff);
  const units = [['year', 31536000], ['month', 2592000], ['week', 604800], ['day', 86400],
                 ['hour', 3600], ['minute', 60], ['second', 1]];
  for (const [unit, sec] of units) {
    if (abs >= sec || unit === 'second') return rtf.format(Math.round(diff / sec), unit);
  }
}

function refreshTimes() {
  document.querySelectorAll('time.timeago').forEach(t => {
    const dt = t.getAttribute('datetime');
    if (dt) t.textContent = timeago(dt);
  });
}

refreshTimes();
setInterval(refreshTimes, 30000);
"""


def _e(value) -> str:
    return escape(str(value), quote=True)


def _time(dt: datetime) -> str:
    iso = dt.isoformat()
    return f'<time class="timeago" datetime="{_e(iso)}">{_e(iso)}</time>'


def _pipeline_dot(item: WorkItem) -> str:
    status = item.build_status
    if status is None:
        return ""
    return (
        f'<a class="pipe" target="_blank" rel="noopener noreferrer" href="{_e(status.web_url)}" '
        f'title="pipeline: {_e(status.status)}"><span class="dot" data-status="{_e(status.status)}"></span></a>'
    )


def _work_item_card(item: WorkItem) -> str:
    return f"""<div class="card">
      <div class="title"><a target="_blank" rel="noopener noreferrer" href="{_e(item.web_url)}">{_e(item.title)}</a></div>
      <div class="meta">
        <span class="badge">{_e(item.reference)}</span>
        <span>by {_e(item.author_name)}</span>
        {_pipeline_dot(item)}
        <span>&middot; updated</span> {_time(item.updated_at)}
      </div>
    </div>"""


def _team_item_row(item: WorkItem) -> str:
    return f"""<li>
      <a target="_blank" rel="noopener noreferrer" href="{_e(item.web_url)}">{_e(item.title)}</a>
      <div class="small">{_e(item.reference)} &middot; {_e(item.author_name)} {_pipeline_dot(item)}</div>
    </li>"""


def _notification_card(todo: Notification) -> str:
    project = f'<span class="badge">{_e(todo.project_name)}</span>' if todo.project_name else ""
    return f"""<div class="card">
      <div class="title"><a target="_blank" rel="noopener noreferrer" href="{_e(todo.target_url)}">{_e(todo.target_title)}</a></div>
      <div class="meta">
        {project}
        <span class="badge">{_e(todo.target_type)}</span>
        <span class="badge">{_e(todo.action_name)}</span>
        <span>&middot; created</span> {_time(todo.created_at)}
      </div>
    </div>"""


def _grid(cards: list[str], empty_text: str) -> str:
    if not cards:
        return f'<div class="empty">{_e(empty_text)}</div>'
    return '<div class="grid">' + "".join(cards) + "</div>"


def render_dashboard(
    dashboard: Dashboard,
    username: str,
    base_url: str,
    refresh_seconds: int = 60,
) -> str:
    """Render the full page for one aggregation cycle."""
    if dashboard.team_items:
        team = '<ul class="list">' + "".join(_team_item_row(i) for i in dashboard.team_items) + "</ul>"
    else:
        team = '<div class="empty">No team merge requests.</div>'

    mine = _grid([_work_item_card(i) for i in dashboard.my_items], "No open merge requests.")
    todos = _grid([_notification_card(t) for t in dashboard.notifications], "No pending todos.")

    refresh = f'<meta http-equiv="refresh" content="{int(refresh_seconds)}">' if refresh_seconds > 0 else ""

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta name="color-scheme" content="light dark">
{refresh}
<title>GitLab dashboard - {_e(username)}</title>
<style>{_STYLE}</style>
</head>
<body>
<div class="container">
  <header>
    <h1>GitLab dashboard</h1>
    <div class="small">Signed in as <strong>{_e(username)}</strong></div>
  </header>
  <div class="topline">Host: {_e(base_url)} &middot; Auto-refresh every {int(refresh_seconds)}s</div>

  <div class="layout">
    <aside class="sidebar">
      <h2>Team merge requests</h2>
      {team}
      <div class="small" style="margin-top:10px">Authored by or assigned to <code>TEAMMATE_USERNAMES</code></div>
    </aside>

    <main>
      <div class="section">
        <h2>Open merge requests <span class="small">(assignee + reviewer)</span></h2>
        {mine}
      </div>
      <div class="section">
        <h2>Todos</h2>
        {todos}
      </div>
    </main>
  </div>

  <footer>Links open in a new tab.</footer>
</div>
<script>{_SCRIPT}</script>
</body>
</html>"""
