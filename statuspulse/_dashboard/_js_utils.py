"""JavaScript utility functions for the dashboard.

This module contains formatting and helper functions used across the dashboard.
"""

JS_UTILS = """
        const FETCH_TIMEOUT_MS = 15000;

        // Helper function to fetch with timeout
        async function fetchWithTimeout(url, options = {}) {
            const controller = new AbortController();
            const timeout = setTimeout(() => {
                controller.abort(new DOMException('Request timed out after ' + FETCH_TIMEOUT_MS + 'ms', 'TimeoutError'));
            }, FETCH_TIMEOUT_MS);
            try {
                return await fetch(url, { ...options, signal: controller.signal });
            } finally {
                clearTimeout(timeout);
            }
        }

        function escapeHtml(text) {
            const div = document.createElement('div');
            div.textContent = text === null || text === undefined ? '' : String(text);
            return div.innerHTML;
        }

        function formatResponseTime(ms) {
            if (ms === null || ms === undefined) return '---';
            return ms + 'ms';
        }

        function formatUptime(uptime) {
            if (uptime === null || uptime === undefined) return 'no data';
            return uptime.toFixed(2) + '% uptime';
        }

        function formatDateTime(isoString) {
            if (!isoString) return '---';
            const date = new Date(isoString);
            if (isNaN(date.getTime())) return '---';
            return date.toLocaleString(navigator.language, {
                month: 'short',
                day: 'numeric',
                hour: '2-digit',
                minute: '2-digit'
            });
        }

        function formatDay(isoDate) {
            // Calendar dates are already in the page timezone; avoid shifting them.
            const [y, m, d] = isoDate.split('-').map(Number);
            const date = new Date(Date.UTC(y, m - 1, d));
            return date.toLocaleDateString(navigator.language, {
                timeZone: 'UTC',
                year: 'numeric',
                month: 'short',
                day: 'numeric'
            });
        }

        function levelLabel(level) {
            switch (level) {
                case 'up': return 'Operational';
                case 'degraded': return 'Degraded';
                case 'down': return 'Down';
                default: return 'No data';
            }
        }
"""
