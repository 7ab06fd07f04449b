"""Single-page template served at ``/``.

The page only binds the UI: the record list, rendering and export all live on
the server, and the browser polls ``/api/files`` while the queue is busy.
"""

PAGE_TEMPLATE = r"""
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>LDB Passport OCR</title>
  <style>
    :root {
      --bg: #e8e8e8;
      --panel: #ffffff;
      --border: #cfcfcf;
      --text: #1f1f1f;
      --muted: #6b6b6b;
      --accent: #3d3d3d;
      --accent-strong: #2b2b2b;
      --highlight: #ececec;
      --red-500: #ef4444;
      --amber-500: #f59e0b;
      --emerald-500: #10b981;
    }
    * { box-sizing: border-box; }
    body { font-family: Arial, sans-serif; margin: 0; padding: 16px; background: var(--bg); color: var(--text); min-height: 100vh; }
    h2 { margin: 0 0 8px; color: var(--accent-strong); }
    button { background: var(--accent); color: #f5f5f5; border: none; padding: 10px 16px; border-radius: 8px; cursor: pointer; font-size: 14px; }
    button.ghost { background: transparent; color: var(--accent-strong); border: 1px solid var(--border); }
    button.danger { background: var(--red-500); }
    button:disabled { background: #b5b5b5; cursor: not-allowed; }
    label { display: block; margin-bottom: 6px; font-weight: bold; color: var(--accent-strong); }
    input { width: 100%; padding: 8px; border-radius: 6px; border: 1px solid var(--border); font-size: 14px; background: #fdfdfd; color: var(--text); }
    .frame { max-width: 1400px; margin: 0 auto; display: flex; flex-direction: column; gap: 12px; }
    .header { display: flex; justify-content: space-between; align-items: center; }
    .header .title { font-size: 20px; font-weight: bold; color: var(--accent-strong); }
    .panel { background: var(--panel); border: 1px solid var(--border); border-radius: 12px; padding: 16px; box-shadow: 0 1px 3px rgba(0,0,0,0.06); }
    .stack { display: flex; gap: 8px; align-items: center; flex-wrap: wrap; }
    .label-muted { color: var(--muted); font-size: 13px; }
    .hidden { display: none !important; }
    #uploadArea { border: 2px dashed var(--border); border-radius: 12px; padding: 40px; text-align: center; cursor: pointer; background: var(--highlight); }
    #uploadArea.dragover { border-color: var(--accent); background: #dedede; }
    .table-wrap { overflow-x: auto; }
    table { width: 100%; border-collapse: collapse; font-size: 13px; }
    th, td { border-bottom: 1px solid var(--border); padding: 6px 8px; text-align: left; white-space: nowrap; }
    th { background: var(--highlight); }
    .td-center { text-align: center; }
    .row-error { background: #fdecec; }
    .row-processing { background: #fff8e6; }
    .file-info { display: flex; flex-direction: column; }
    .file-status { font-size: 11px; }
    .file-status.processing { color: var(--amber-500); }
    .file-status.error { color: var(--red-500); white-space: normal; }
    .passport-badge { font-family: monospace; font-weight: bold; }
    .badge { border-radius: 6px; padding: 2px 6px; font-size: 12px; }
    .badge-processing { background: #fef3c7; }
    .badge-success { background: #d1fae5; }
    .badge-error { background: #fee2e2; }
    #loadingOverlay { position: fixed; inset: 0; background: rgba(0,0,0,0.45); display: flex; align-items: center; justify-content: center; z-index: 10; }
    #loadingOverlay .panel { text-align: center; min-width: 280px; }
    #toast { position: fixed; right: 16px; bottom: 16px; color: #fff; padding: 10px 14px; border-radius: 10px; opacity: 0; transition: opacity 0.3s; z-index: 20; }
    #toast.show { opacity: 1; }
  </style>
</head>
<body>
  <div class="frame">
    <div class="header">
      <div>
        <div class="title">LDB Passport OCR</div>
        <div class="label-muted">Powered by {{ model }} · v{{ version }}</div>
      </div>
      <button id="headerSettingsBtn" type="button" class="ghost">Settings</button>
    </div>

    <section id="apiSection" class="panel {% if has_api_key %}hidden{% endif %}">
      <h2>Google AI API key</h2>
      <label for="apiKey">API key</label>
      <div class="stack">
        <input id="apiKey" type="password" placeholder="AIza..." autocomplete="off" style="flex:1;" />
        <button id="toggleKey" type="button" class="ghost">Show</button>
      </div>
      <div class="label-muted" style="margin-top:6px;">The key is stored in the local settings file on this machine.</div>
      <div style="margin-top:8px;">
        <button id="saveApiBtn" type="button">Save settings</button>
      </div>
    </section>

    <section id="mainApp" class="{% if not has_api_key %}hidden{% endif %}">
      <div class="panel">
        <div id="uploadArea">
          <h2>Drop passport photos here</h2>
          <div class="label-muted">or click to choose files (JPG, PNG, WebP)</div>
        </div>
        <input id="fileInput" type="file" accept="image/*" multiple class="hidden" />
      </div>

      <div id="actionButtons" class="stack hidden" style="margin-top:12px;">
        <button id="exportBtn" type="button">Export to Excel</button>
        <button id="resetBtn" type="button" class="danger">Reset all</button>
      </div>

      <div id="resultsSection" class="panel hidden" style="margin-top:12px;">
        <h2>Results (<span id="fileCount">0</span>)</h2>
        <div class="table-wrap">
          <table>
            <thead>
              <tr>
                <th>No</th><th>File Name</th><th>Passport No</th><th>Full Name</th>
                <th>Date of Birth</th><th>Place of Birth</th><th>Date of Issue</th>
                <th>Date of Expiry</th><th>Nationality</th><th>Gender</th>
                <th>Issuing Authority</th><th>Status</th>
              </tr>
            </thead>
            <tbody id="resultsBody"></tbody>
          </table>
        </div>
      </div>
    </section>
  </div>

  <div id="loadingOverlay" class="hidden">
    <div class="panel">
      <h2 id="loadingTitle">Analyzing with Gemini AI...</h2>
      <div id="loadingSubtitle" class="label-muted">Extracting passport data...</div>
    </div>
  </div>

  <div id="toast" class="hidden"><span id="toastIcon"></span> <span id="toastMessage"></span></div>

  <script>
    const $ = (sel) => document.querySelector(sel);
    let knownStatuses = {};
    let pollTimer = null;

    async function api(path, options = {}) {
      const response = await fetch(path, options);
      const body = await response.json().catch(() => ({}));
      if (!response.ok) {
        const error = new Error(body.error || `HTTP ${response.status}`);
        error.body = body;
        throw error;
      }
      return body;
    }

    // ---------- Settings ----------
    function showMainApp() {
      $('#apiSection').classList.add('hidden');
      $('#mainApp').classList.remove('hidden');
    }

    function showSettings() {
      $('#apiSection').classList.remove('hidden');
      $('#mainApp').classList.add('hidden');
    }

    async function handleSaveApi() {
      const apiKey = ($('#apiKey').value || '').trim();
      if (!apiKey) {
        showToast('Please enter your API key', 'error');
        return;
      }
      try {
        const body = await api('/api/settings', {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ apiKey }),
        });
        if (body.warning) showToast(body.warning, 'warning');
        showMainApp();
        showToast(body.message);
      } catch (err) {
        showToast(err.message, 'error');
      }
    }

    function togglePassword() {
      const input = $('#apiKey');
      input.type = input.type === 'password' ? 'text' : 'password';
      $('#toggleKey').textContent = input.type === 'password' ? 'Show' : 'Hide';
    }

    // ---------- Upload ----------
    async function processFiles(fileList) {
      const form = new FormData();
      Array.from(fileList).forEach((file) => form.append('files', file, file.name));
      try {
        const body = await api('/api/upload', { method: 'POST', body: form });
        if (body.warning) showToast(body.warning, 'warning');
        body.accepted.forEach((f) => { knownStatuses[f.id] = f.status; });
        await refreshFiles();
      } catch (err) {
        showToast(err.message, 'error');
        if (err.body && err.body.needsSettings) showSettings();
      }
    }

    function handleDragOver(e) {
      e.preventDefault();
      e.stopPropagation();
      $('#uploadArea').classList.add('dragover');
    }

    function handleDragLeave(e) {
      e.preventDefault();
      e.stopPropagation();
      $('#uploadArea').classList.remove('dragover');
    }

    function handleDrop(e) {
      handleDragLeave(e);
      if (e.dataTransfer && e.dataTransfer.files) processFiles(e.dataTransfer.files);
    }

    function handleFileSelect(e) {
      if (e.target && e.target.files) {
        processFiles(e.target.files);
        e.target.value = '';
      }
    }

    // ---------- Results ----------
    function announceTransitions(files) {
      files.forEach((f) => {
        const previous = knownStatuses[f.id];
        if (previous === 'processing' && f.status === 'success') {
          showToast(`Extracted: ${f.data.passportNo || f.fileName}`);
        } else if (previous === 'processing' && f.status === 'error') {
          showToast(`Failed: ${f.fileName}`, 'error');
        }
        knownStatuses[f.id] = f.status;
      });
    }

    async function refreshFiles() {
      const body = await api('/api/files');
      const hasFiles = body.count > 0;
      $('#actionButtons').classList.toggle('hidden', !hasFiles);
      $('#resultsSection').classList.toggle('hidden', !hasFiles);
      $('#fileCount').textContent = body.count;
      $('#resultsBody').innerHTML = body.html;
      announceTransitions(body.files);

      if (body.busy) {
        showLoading('Analyzing with Gemini AI...', 'Extracting passport data...');
        clearTimeout(pollTimer);
        pollTimer = setTimeout(() => refreshFiles().catch(handleGlobalError), 1000);
      } else {
        hideLoading();
      }
    }

    // ---------- Export / reset ----------
    async function exportExcel() {
      try {
        const response = await fetch('/api/export');
        if (!response.ok) {
          const body = await response.json().catch(() => ({}));
          throw new Error(body.error || `HTTP ${response.status}`);
        }
        const disposition = response.headers.get('Content-Disposition') || '';
        const match = disposition.match(/filename="?([^";]+)"?/);
        const filename = match ? match[1] : 'LDB_Passport_OCR.xlsx';
        const blob = await response.blob();
        const link = document.createElement('a');
        link.href = URL.createObjectURL(blob);
        link.download = filename;
        link.click();
        URL.revokeObjectURL(link.href);
        showToast(`Excel exported successfully! (${$('#fileCount').textContent} records)`);
      } catch (err) {
        showToast(err.message, 'error');
      }
    }

    async function resetAll() {
      if (Number($('#fileCount').textContent) === 0) return;
      if (!confirm('Delete all data? This cannot be undone.')) return;
      try {
        const body = await api('/api/reset', { method: 'POST' });
        knownStatuses = {};
        await refreshFiles();
        showToast(body.message);
      } catch (err) {
        showToast(err.message, 'error');
      }
    }

    // ---------- Loading / toast ----------
    function showLoading(title, subtitle) {
      $('#loadingTitle').textContent = title;
      $('#loadingSubtitle').textContent = subtitle;
      $('#loadingOverlay').classList.remove('hidden');
    }

    function hideLoading() {
      setTimeout(() => $('#loadingOverlay').classList.add('hidden'), 300);
    }

    function showToast(message, type = 'success') {
      const toast = $('#toast');
      $('#toastMessage').textContent = message;
      $('#toastIcon').textContent = type === 'error' ? '✕' : type === 'warning' ? '⚠' : '✓';
      toast.style.background = type === 'error' ? 'var(--red-500)' :
                               type === 'warning' ? 'var(--amber-500)' : 'var(--emerald-500)';
      toast.classList.remove('hidden');
      requestAnimationFrame(() => toast.classList.add('show'));
      setTimeout(() => {
        toast.classList.remove('show');
        setTimeout(() => toast.classList.add('hidden'), 300);
      }, 3000);
    }

    function handleGlobalError(e) {
      console.error('Global error:', e);
      hideLoading();
    }

    window.addEventListener('error', handleGlobalError);
    window.addEventListener('unhandledrejection', handleGlobalError);

    // ---------- Init ----------
    $('#saveApiBtn').addEventListener('click', handleSaveApi);
    $('#toggleKey').addEventListener('click', togglePassword);
    $('#headerSettingsBtn').addEventListener('click', showSettings);
    $('#uploadArea').addEventListener('click', () => $('#fileInput').click());
    $('#uploadArea').addEventListener('dragover', handleDragOver);
    $('#uploadArea').addEventListener('dragleave', handleDragLeave);
    $('#uploadArea').addEventListener('drop', handleDrop);
    $('#fileInput').addEventListener('change', handleFileSelect);
    $('#exportBtn').addEventListener('click', exportExcel);
    $('#resetBtn').addEventListener('click', resetAll);

    refreshFiles().catch(handleGlobalError);
  </script>
</body>
</html>
"""
