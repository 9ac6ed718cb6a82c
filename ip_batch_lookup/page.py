INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Batch IP Lookup</title>
  <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-gray-50 text-gray-800">
  <div class="max-w-6xl mx-auto p-6">
    <h1 class="text-2xl md:text-3xl font-bold mb-4">Batch IP Lookup</h1>
    <p class="text-sm text-gray-600 mb-6">IPv4 and IPv6, up to __MAX_IPS__ addresses per run. Lookups go through the <code>ip-api.com</code> batch API on the server.</p>

    <div class="grid md:grid-cols-3 gap-4 items-start">
      <div class="md:col-span-2">
        <textarea id="ipInput" class="w-full h-56 p-3 border rounded-2xl focus:outline-none focus:ring shadow" placeholder="One IP per line, or separated by commas / spaces"></textarea>
        <div class="flex items-center gap-3 mt-3">
          <input type="file" id="fileInput" accept=".txt,.csv" class="block text-sm" />
          <button id="parseBtn" class="px-4 py-2 rounded-2xl bg-black text-white shadow">Look up</button>
          <button id="clearBtn" class="px-4 py-2 rounded-2xl bg-white border shadow">Clear</button>
        </div>
      </div>
      <div class="md:col-span-1 p-4 bg-white rounded-2xl border shadow">
        <h2 class="font-semibold mb-2">Progress</h2>
        <div class="w-full bg-gray-200 rounded-full h-3 overflow-hidden">
          <div id="bar" class="bg-gray-800 h-3 w-0"></div>
        </div>
        <div id="progressText" class="text-sm mt-2">Waiting...</div>
        <div id="rejectedWrap" class="text-xs text-yellow-700 mt-3 hidden"></div>
        <div class="mt-4 flex gap-2">
          <button id="exportCsv" class="px-3 py-2 rounded-2xl bg-white border shadow disabled:opacity-50" disabled>Export CSV</button>
          <button id="copyJson" class="px-3 py-2 rounded-2xl bg-white border shadow disabled:opacity-50" disabled>Copy JSON</button>
        </div>
      </div>
    </div>

    <div class="mt-6">
      <div class="flex items-center justify-between mb-2">
        <h2 class="text-lg font-semibold">Results</h2>
        <label class="text-sm text-gray-500"><input id="onlySuccess" type="checkbox" class="mr-1">Successful only</label>
      </div>
      <div class="overflow-auto bg-white rounded-2xl border shadow">
        <table class="min-w-full text-sm">
          <thead class="bg-gray-100">
            <tr id="headRow"></tr>
          </thead>
          <tbody id="tbody"></tbody>
        </table>
      </div>
    </div>
  </div>

  <script>
    const COLUMNS = [
      ['IP', r => r.query], ['Status', r => r.status], ['Country', r => r.country],
      ['Region', r => r.regionName], ['City', r => r.city], ['ISP', r => r.isp],
      ['Org', r => r.org], ['Lat', r => r.lat], ['Lon', r => r.lon], ['Error', r => r.message],
    ];
    const $ = id => document.getElementById(id);
    const ta = $('ipInput'), tbody = $('tbody'), bar = $('bar'), progressText = $('progressText');
    const exportCsvBtn = $('exportCsv'), copyJsonBtn = $('copyJson'), rejectedWrap = $('rejectedWrap');
    let lastResults = [];

    $('headRow').innerHTML = COLUMNS.map(c => '<th class="px-3 py-2 border-b text-left">' + c[0] + '</th>').join('');

    function cell(v) { return v === undefined || v === null ? '' : String(v); }
    function esc(v) {
      return cell(v).replace(/&/g, '&amp;').replace(/</g, '&lt;').replace(/>/g, '&gt;');
    }
    function setProgress(done, total) {
      const pct = total ? Math.round(done * 100 / total) : 0;
      bar.style.width = pct + '%';
      progressText.textContent = total ? 'Done ' + done + '/' + total + ' (' + pct + '%)' : 'Waiting...';
    }
    function csvField(v) {
      const s = cell(v);
      return /[",\\n]/.test(s) ? '"' + s.replace(/"/g, '""') + '"' : s;
    }
    function toCSV(rows) {
      const lines = [COLUMNS.map(c => csvField(c[0])).join(',')];
      for (const r of rows) lines.push(COLUMNS.map(c => csvField(c[1](r))).join(','));
      return lines.join('\\n');
    }
    function renderTable(rows) {
      const filtered = $('onlySuccess').checked ? rows.filter(r => r.status === 'success') : rows;
      tbody.innerHTML = filtered.map(r =>
        '<tr>' + COLUMNS.map(c => '<td class="px-3 py-2 border-b">' + esc(c[1](r)) + '</td>').join('') + '</tr>'
      ).join('');
    }
    function finish(data) {
      lastResults = data.results || [];
      setProgress(data.total, data.total);
      renderTable(lastResults);
      progressText.textContent = 'Finished: ' + data.total + ' addresses';
      exportCsvBtn.disabled = false;
      copyJsonBtn.disabled = false;
      if (data.rejected && data.rejected.length) {
        rejectedWrap.classList.remove('hidden');
        rejectedWrap.textContent = 'Ignored ' + data.rejected.length + ' non-IP tokens (e.g. ' +
          data.rejected.slice(0, 5).join(', ') + (data.rejected.length > 5 ? '...' : '') + ')';
      }
    }

    $('onlySuccess').addEventListener('change', () => renderTable(lastResults));
    $('clearBtn').addEventListener('click', () => {
      ta.value = '';
      tbody.innerHTML = '';
      lastResults = [];
      setProgress(0, 0);
      rejectedWrap.classList.add('hidden');
      exportCsvBtn.disabled = true;
      copyJsonBtn.disabled = true;
    });
    $('fileInput').addEventListener('change', async (e) => {
      const file = e.target.files[0];
      if (!file) return;
      const text = await file.text();
      ta.value += (ta.value && !ta.value.endsWith('\\n') ? '\\n' : '') + text;
    });
    $('parseBtn').addEventListener('click', async () => {
      setProgress(0, 0);
      tbody.innerHTML = '';
      progressText.textContent = 'Looking up...';
      exportCsvBtn.disabled = true;
      copyJsonBtn.disabled = true;
      rejectedWrap.classList.add('hidden');
      try {
        const resp = await fetch('/api/lookup/stream', {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ input: ta.value })
        });
        if (!resp.ok) {
          const data = await resp.json();
          progressText.textContent = data.error || 'Lookup failed';
          return;
        }
        const reader = resp.body.getReader();
        const decoder = new TextDecoder();
        let buf = '';
        for (;;) {
          const { value, done } = await reader.read();
          if (done) break;
          buf += decoder.decode(value, { stream: true });
          let nl;
          while ((nl = buf.indexOf('\\n')) >= 0) {
            const line = buf.slice(0, nl).trim();
            buf = buf.slice(nl + 1);
            if (!line) continue;
            const msg = JSON.parse(line);
            if (msg.event === 'progress') setProgress(msg.done, msg.total);
            else if (msg.event === 'result') finish(msg);
            else if (msg.event === 'error') progressText.textContent = msg.error;
          }
        }
      } catch (e) {
        console.error(e);
        progressText.textContent = 'Network or server error';
      }
    });
    exportCsvBtn.addEventListener('click', () => {
      const blob = new Blob([toCSV(lastResults)], { type: 'text/csv;charset=utf-8;' });
      const url = URL.createObjectURL(blob);
      const a = document.createElement('a');
      a.href = url;
      a.download = 'ip_lookup_results.csv';
      document.body.appendChild(a);
      a.click();
      a.remove();
      URL.revokeObjectURL(url);
    });
    copyJsonBtn.addEventListener('click', async () => {
      try {
        await navigator.clipboard.writeText(JSON.stringify(lastResults, null, 2));
        copyJsonBtn.textContent = 'Copied';
        setTimeout(() => (copyJsonBtn.textContent = 'Copy JSON'), 1200);
      } catch (e) {
        alert('Copy failed, please select and copy the text manually');
      }
    });
  </script>
</body>
</html>
"""


def render_index(max_ips: int) -> str:
    return INDEX_HTML.replace('__MAX_IPS__', str(max_ips))
