"""JavaScript core functionality for the dashboard.

Fetches /status, renders the overall badge, per-service uptime strips and the
incident list, and schedules the next refresh.
"""

JS_CORE = """
        let refreshTimer = null;

        function renderStrip(service) {
            const cells = service.days.map(day =>
                `<span class="day ${day.level}" title="${escapeHtml(formatDay(day.date))}: ${levelLabel(day.level)}"></span>`
            ).join('');
            const first = service.days.length ? formatDay(service.days[0].date) : '';
            return `
                <div class="strip" role="img" aria-label="${service.days.length}-day uptime for ${escapeHtml(service.name)}">${cells}</div>
                <div class="strip-legend" aria-hidden="true">
                    <span>${escapeHtml(first)}</span>
                    <span>${formatUptime(service.uptime_percent)}</span>
                    <span>Today</span>
                </div>
            `;
        }

        function renderService(service) {
            const detail = service.error
                ? `<span class="error">${escapeHtml(service.error)}</span>`
                : escapeHtml(service.status_code !== null ? service.status_code + ' ' + (service.status_text || '') : '---');
            return `
                <section class="service">
                    <div class="service-header">
                        <span class="service-name"><a href="${escapeHtml(service.url)}" rel="noopener">${escapeHtml(service.name)}</a></span>
                        <span class="service-state ${service.level}">${levelLabel(service.level)}</span>
                    </div>
                    ${renderStrip(service)}
                    <div class="service-meta">${detail} &middot; ${formatResponseTime(service.response_time_ms)}</div>
                </section>
            `;
        }

        function renderIncidents(groups) {
            if (!groups.length) {
                return '<p class="empty">No incidents recorded.</p>';
            }
            return groups.map(group => `
                <section class="incident-day">
                    <h3>${escapeHtml(formatDay(group.date))}</h3>
                    <ul>
                        ${group.incidents.map(incident => `
                            <li><strong>${escapeHtml(incident.name)}</strong> was down
                                (${escapeHtml(incident.status_code !== null ? incident.status_code : (incident.error || 'no response'))})
                                at ${escapeHtml(formatDateTime(incident.observed_at))}</li>
                        `).join('')}
                    </ul>
                </section>
            `).join('');
        }

        function renderDashboard(data) {
            document.title = data.title;
            document.getElementById('title').textContent = data.title;
            document.getElementById('description').textContent = data.description;

            const overall = document.getElementById('overall');
            overall.className = 'overall ' + data.overall.level;
            overall.textContent = data.overall.label;

            document.getElementById('services').innerHTML = data.services.map(renderService).join('');
            document.getElementById('incidents').innerHTML = renderIncidents(data.incidents);
            document.getElementById('lastUpdated').textContent =
                'Last checked ' + formatDateTime(data.last_updated) + ' (' + data.timezone + ')';

            document.getElementById('errorState').hidden = true;
            document.getElementById('content').hidden = false;
        }

        function renderError(message) {
            const errorState = document.getElementById('errorState');
            errorState.textContent = 'Unable to load status: ' + message + '. Retrying shortly.';
            errorState.hidden = false;
        }

        function schedule(delayMs) {
            clearTimeout(refreshTimer);
            refreshTimer = setTimeout(loadStatus, delayMs);
        }

        async function loadStatus() {
            try {
                const response = await fetchWithTimeout('/status', { cache: 'no-store' });
                if (!response.ok) {
                    let message = 'HTTP ' + response.status;
                    try {
                        const body = await response.json();
                        if (body.error) message = body.error;
                    } catch (e) {
                        // Non-JSON error body
                    }
                    throw new Error(message);
                }
                renderDashboard(await response.json());
                schedule(POLL_INTERVAL_MS);
            } catch (error) {
                console.error('Error fetching status:', error);
                renderError(error.message);
                schedule(RETRY_BACKOFF_MS);
            }
        }

        document.addEventListener('visibilitychange', () => {
            if (!document.hidden) {
                loadStatus();
            }
        });

        loadStatus();
"""
