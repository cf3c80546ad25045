"""
Scripts evaluated inside the page by the dynamic scanner.

GLYPH_SCRIPT returns ``{family: [codepoint, ...]}``. Every codepoint is also
recorded under ``"*"``. LINKS_SCRIPT returns the resolved ``href`` of every
anchor on the page.
"""

GLYPH_SCRIPT = """() => {
    const sets = {};
    const SKIPPED = new Set(['script', 'style', 'noscript', 'template']);

    function add(family, code) {
        if (!sets[family]) {
            sets[family] = new Set();
        }
        sets[family].add(code);
    }

    function saveGlyphs(text, family) {
        for (const ch of text) {
            const code = ch.codePointAt(0);
            if (!code) continue;
            add(family || '*', code);
            add('*', code);
        }
    }

    function familyOf(node, pseudo) {
        try {
            let family = window.getComputedStyle(node, pseudo || null).getPropertyValue('font-family');
            if (family) {
                family = family.split(',')[0].trim().replace(/['"]/g, '');
            }
            return family || '*';
        } catch (e) {
            return '*';
        }
    }

    function processText(text, node, family) {
        let style;
        try {
            style = window.getComputedStyle(node);
        } catch (e) {
            saveGlyphs(text, family);
            return;
        }
        const transform = style.getPropertyValue('text-transform');
        const variant = style.getPropertyValue('font-variant') || '';

        if (transform === 'capitalize' || variant.includes('small-caps')) {
            saveGlyphs(text.toLowerCase(), family);
            saveGlyphs(text.toUpperCase(), family);
            return;
        }
        if (transform === 'uppercase') {
            text = text.toUpperCase();
        } else if (transform === 'lowercase') {
            text = text.toLowerCase();
        }
        saveGlyphs(text, family);
    }

    function pseudoContent(node, pseudo) {
        try {
            let content = window.getComputedStyle(node, pseudo).getPropertyValue('content');
            if (!content || content === 'none' || content === 'normal') return '';
            if (content.startsWith('attr(') || content.startsWith('counter')) return '';
            return content.replace(/^["']|["']$/g, '');
        } catch (e) {
            return '';
        }
    }

    function skipped(node) {
        return SKIPPED.has(node.tagName.toLowerCase()) || node.closest('script, style, noscript, template') !== null;
    }

    for (const node of document.querySelectorAll('*')) {
        if (skipped(node)) continue;

        let family = null;
        for (const child of node.childNodes) {
            if (child.nodeType !== Node.TEXT_NODE) continue;
            const text = child.nodeValue;
            if (!text || !text.trim()) continue;
            if (family === null) family = familyOf(node);
            processText(text, node, family);
        }

        for (const pseudo of ['::before', '::after']) {
            const content = pseudoContent(node, pseudo);
            if (content) {
                processText(content, node, familyOf(node, pseudo));
            }
        }
    }

    const result = {};
    for (const [family, codes] of Object.entries(sets)) {
        result[family] = Array.from(codes);
    }
    return result;
}"""

LINKS_SCRIPT = "els => els.map(el => el.href)"
