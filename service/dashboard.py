"""HTML page for ``/analytics/dashboard``.

The page is static; it fetches ``/analytics`` (relative to its own URL so it
keeps working behind a path-prefixing reverse proxy) and draws the charts
client-side with Chart.js.
"""

DASHBOARD_REFRESH_SECONDS = 30

DASHBOARD_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Nextcloud MCP - Analytics Dashboard</title>
  <script src="https://cdn.jsdelivr.net/npm/chart.js"></script>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
      background: #00679e;
      color: #f4f4f5;
      padding: 24px;
    }
    main { max-width: 1280px; margin: 0 auto; }
    h1 { text-align: center; margin-bottom: 24px; }
    .cards, .charts { display: grid; gap: 16px; margin-bottom: 24px; }
    .cards { grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); }
    .charts { grid-template-columns: repeat(auto-fit, minmax(380px, 1fr)); }
    .panel {
      background: rgba(255, 255, 255, 0.1);
      border: 1px solid rgba(255, 255, 255, 0.2);
      border-radius: 12px;
      padding: 20px;
    }
    .card { text-align: center; }
    .card strong { display: block; font-size: 2.2rem; }
    .card span, .muted { color: rgba(255, 255, 255, 0.65); font-size: 0.9rem; }
    .panel h2 { font-size: 1.1rem; margin-bottom: 12px; }
    .row { display: flex; justify-content: space-between; padding: 8px 0; }
    .row + .row { border-top: 1px solid rgba(255, 255, 255, 0.1); }
    footer { text-align: center; }
  </style>
</head>
<body>
<main>
  <h1>Nextcloud MCP Analytics</h1>
  <section class="cards">
    <div class="panel card"><strong id="total-requests">-</strong><span>Requests</span></div>
    <div class="panel card"><strong id="total-tool-calls">-</strong><span>Tool calls</span></div>
    <div class="panel card"><strong id="unique-clients">-</strong><span>Unique clients</span></div>
    <div class="panel card"><strong id="uptime">-</strong><span>Uptime</span></div>
  </section>
  <section class="charts">
    <div class="panel"><h2>Tool usage</h2><canvas id="tools-chart"></canvas></div>
    <div class="panel"><h2>Requests per hour (last 24h)</h2><canvas id="hourly-chart"></canvas></div>
    <div class="panel"><h2>Clients by user agent</h2><canvas id="agents-chart"></canvas></div>
    <div class="panel"><h2>Top client IPs</h2><div id="top-ips"></div></div>
  </section>
  <section class="panel">
    <h2>Recent tool calls</h2>
    <div id="recent-calls"></div>
  </section>
  <footer class="muted">Refreshes every __REFRESH__ seconds</footer>
</main>
<script>
  const charts = {};

  function draw(id, type, labels, values, options) {
    if (charts[id]) charts[id].destroy();
    charts[id] = new Chart(document.getElementById(id), {
      type: type,
      data: { labels: labels, datasets: [{ label: "Requests", data: values, backgroundColor: "#a0d8ef", borderColor: "#a0d8ef" }] },
      options: Object.assign({ responsive: true, plugins: { legend: { display: type === "doughnut" } } }, options || {})
    });
  }

  function rows(entries, render) {
    return entries.map(render).join("") || '<p class="muted">No data yet</p>';
  }

  async function refresh() {
    const base = window.location.pathname.replace(/\\/analytics\\/dashboard\\/?$/, "");
    const data = await (await fetch(base + "/analytics")).json();

    document.getElementById("total-requests").textContent = data.summary.totalRequests.toLocaleString();
    document.getElementById("total-tool-calls").textContent = data.summary.totalToolCalls.toLocaleString();
    document.getElementById("unique-clients").textContent = data.summary.uniqueClients;
    document.getElementById("uptime").textContent = data.uptime;

    const tools = Object.entries(data.breakdown.byTool).slice(0, 10);
    draw("tools-chart", "doughnut", tools.map(t => t[0]), tools.map(t => t[1]));
    const hours = Object.entries(data.hourlyRequests);
    draw("hourly-chart", "line", hours.map(h => h[0].split("T")[1]), hours.map(h => h[1]));
    const agents = Object.entries(data.clients.byUserAgent).slice(0, 8);
    draw("agents-chart", "bar", agents.map(a => a[0]), agents.map(a => a[1]), { indexAxis: "y" });

    document.getElementById("top-ips").innerHTML = rows(
      Object.entries(data.clients.byIp).slice(0, 10),
      ([ip, count]) => `<div class="row"><span>${ip}</span><span class="muted">${count}</span></div>`
    );
    document.getElementById("recent-calls").innerHTML = rows(
      data.recentToolCalls.slice(0, 10),
      call => `<div class="row"><span>${call.tool}</span><span class="muted">${new Date(call.timestamp).toLocaleString()}</span></div>`
    );
  }

  refresh();
  setInterval(refresh, __REFRESH__ * 1000);
</script>
</body>
</html>
""".replace("__REFRESH__", str(DASHBOARD_REFRESH_SECONDS))
