import io, zipfile, csv
import streamlit as st
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

# number widgets are limited to JavaScript's safe integer range
SALT_MAX = (1 << 53) - 1


def load_css(path: str | Path) -> None:
    css_path = Path(path)
    css = css_path.read_text(encoding="utf-8")
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)





# ---- preview helper: scale an SVG to a target pixel width (keeps aspect) ----

def _scale_svg_for_preview(svg_text: str, target_width_px: int) -> tuple[str, int]:
    """
    Returns (scaled_svg_text, new_height_px).
    Only used for UI preview; original SVGs stay full size for ZIP/PNG/PDF.
    """
    s = svg_text
    m = re.search(r'viewBox="0\s+0\s+([\d.]+)\s+([\d.]+)"', s)
    if not m:
        return s, 600  # fallback
    vw, vh = float(m.group(1)), float(m.group(2))

    scale = max(0.05, float(target_width_px) / max(1.0, vw))
    new_h = max(50, int(round(vh * scale)))

    # rewrite width/height only on the <svg ...> tag
    s = re.sub(r'(<svg\b[^>]*\bwidth=")[^"]+(")',  rf'\g<1>{int(target_width_px)}\g<2>', s, count=1)
    s = re.sub(r'(<svg\b[^>]*\bheight=")[^"]+(")', rf'\g<1>{new_h}\g<2>',            s, count=1)
    if 'preserveAspectRatio' not in s[:400]:
        s = re.sub(r'<svg\b', '<svg preserveAspectRatio="xMidYMid meet"', s, count=1)
    return s, new_h


def _read_uploaded_words(upload) -> dict[str, list[str]]:
    """
    Uploaded .txt -> {"base": [...]}; uploaded .csv -> one list per column
    (e.g. "base", "themed").
    """
    import square_engine as eng

    text = io.TextIOWrapper(upload, encoding="utf-8-sig")
    if upload.name.lower().endswith(".csv"):
        return eng.wordlists_from_rows(list(csv.reader(text)), first_row_header=True)
    words = [ln.strip() for ln in text if ln.strip() and not ln.strip().startswith("#")]
    return {"base": words}


def _theme_row(solution: list[str], themed: set[str]) -> int | None:
    """First solution row that belongs to the themed list (row i == column i)."""
    for i, row in enumerate(solution):
        if row in themed:
            return i
    return None


st.set_page_config(page_title="Word Square Generator", layout="wide")
# If styles.css is next to app.py:
load_css(Path(__file__).with_name("styles.css"))
st.title("Word Square Generator")




# --- Controls in the sidebar (clean + compact) ---
with st.sidebar:

    tab_create, tab_settings = st.tabs(["Create Puzzle", "Settings"])

    # ---------------------------
    # TAB 1: Create Puzzle
    # ---------------------------
    with tab_create:
        mode = st.selectbox("Puzzle type", ["Daily", "Level"])

        if mode == "Daily":
            r1c1, r1c2 = st.columns(2)
            with r1c1:
                first_day = st.date_input("First day (UTC)", datetime.now(timezone.utc).date())
            with r1c2:
                n_puzzles = st.number_input("# days", 1, 60, 1, format="%d")
            version = st.text_input("Version tag", "TETRAD_v1")
        else:
            world_id = st.text_input("World id", "forest")
            r1c1, r1c2 = st.columns(2)
            with r1c1:
                first_level = st.number_input("First level", 0, 999, 0, format="%d")
            with r1c2:
                n_puzzles = st.number_input("# levels", 1, 60, 3, format="%d")
            salt = st.number_input("Salt", 0, SALT_MAX, 0, format="%d")

        r2c1, r2c2 = st.columns(2)
        with r2c1:
            max_retries = st.number_input("Max start words", 1, 1000, 50, format="%d")
        with r2c2:
            budget_ms = st.number_input("Time budget (ms)", 0, 60000, 500, step=100, format="%d")

        words_file = st.file_uploader("Word list (.txt, or .csv with base/themed columns)", type=["txt", "csv"])
        st.caption("Without a file, the small built-in list is used.")

        go = st.button("Generate", type="primary", use_container_width=True)

    # ---------------------------
    # TAB 2: Settings
    # ---------------------------
    with tab_settings:
        st.caption("Output formats")
        make_png  = st.checkbox("Also make PNG", value=True)
        make_pdf  = st.checkbox("Also make PDF", value=False)
        make_pptx = st.checkbox("Also make PPTX (simple insert)", value=False)

        st.caption("Seeding")
        bind_dict = st.checkbox("Tie daily seed to the word list", value=True)

        st.caption("Preview")
        size_label2 = st.select_slider("Preview size", options=["Small","Medium","Large"], value="Medium")
        PREVIEW_W = {"Small": 280, "Medium": 380, "Large": 520}[size_label2]

        show_log = st.checkbox("Show generator log", value=False)





if go:
    # --- Import inside the button, so errors show on page ---
    try:
        import square_engine as eng
    except Exception as e:
        st.error("Failed to import square_engine.py")
        st.exception(e)
        st.stop()

    try:
        import svg_renderer as svg
    except Exception as e:
        st.error("Failed to import svg_renderer.py")
        st.exception(e)
        st.stop()

    try:
        from cairosvg import svg2png, svg2pdf
    except Exception as e:
        st.error("cairosvg not installed or failed to import")
        st.exception(e)
        st.stop()

    try:
        from pptx import Presentation
        from pptx.util import Inches
    except Exception as e:
        if make_pptx:
            st.error("python-pptx failed to import")
            st.exception(e)
            st.stop()
        else:
            Presentation = None  # not used

    log_lines: list[str] = []
    eng.set_logger(log_lines.append)
    svg.set_logger(log_lines.append)

    # --- Read word lists ---
    lists: dict[str, list[str]] = {}
    try:
        if words_file is not None:
            lists = _read_uploaded_words(words_file)
        else:
            lists = {"base": list(eng.FALLBACK_WORDS)}
    except Exception as e:
        st.error("Could not read word list")
        st.exception(e)
        st.stop()

    themed = {w.strip().lower() for w in lists.get("themed", []) if w.strip()}
    words = eng.merge_word_lists(*lists.values())
    index = eng.WordIndex(words)
    if not index.words_of_length(4):
        st.error("No usable 4-letter words found.")
        st.stop()

    spec = eng.SquareSpec(
        max_retries=int(max_retries),
        time_budget_ms=int(budget_ms),
        bind_seed_to_dictionary=bind_dict,
    )
    if mode == "Daily":
        spec.version = version or "TETRAD_v1"

    svgs = []
    imgs_for_pptx = []
    first_puz_svg = None
    first_sol_svg = None
    first_ascii = None

    try:
        for idx in range(int(n_puzzles)):
            # 1) generate
            if mode == "Daily":
                day = first_day + timedelta(days=idx)
                label = day.isoformat()
                puzzle = eng.generate_daily_puzzle(index, day, spec)
            else:
                level = int(first_level) + idx
                label = f"{world_id} · level {level}"
                puzzle = eng.generate_level_puzzle(index, world_id, level, int(salt), spec)

            # the engine gives up quietly; falling back is our job here
            if puzzle is None:
                st.warning(f"No unique square found for {label}; skipping.")
                continue

            # 2) render puzzle + solution
            look = svg.Appearance(grid_font_family="Arial", grid_font_size=28)
            hi = _theme_row(puzzle.solution, themed) if themed else None

            puz_svg = svg.render_puzzle_svg(puzzle, look, caption=label)
            sol_svg = svg.render_solution_svg(puzzle, look, highlight_index=hi, caption=label)

            stem = re.sub(r"[^A-Za-z0-9]+", "_", label).strip("_")
            svgs.append((f"puzzle_{idx+1:03d}_{stem}.svg", puz_svg))
            svgs.append((f"solution_{idx+1:03d}_{stem}.svg", sol_svg))

            if first_puz_svg is None:
                first_puz_svg = puz_svg
                first_sol_svg = sol_svg
                first_ascii = eng.render_preview_ascii(puzzle)

    except Exception as e:
        st.error("Puzzle generation/rendering failed")
        st.exception(e)
        st.stop()
    finally:
        eng.set_logger(None)
        svg.set_logger(None)


    # --- Previews (tabs) ---
    tab_puz, tab_sol = st.tabs(["Preview: Puzzle", "Preview: Solution"])

    with tab_puz:
        if first_puz_svg:
            svgp, hp = _scale_svg_for_preview(first_puz_svg, PREVIEW_W)
            st.components.v1.html(svgp, height=hp + 6, scrolling=False)
        else:
            st.info("No preview available.")

    with tab_sol:
        if first_sol_svg:
            svg_sol_preview, hs = _scale_svg_for_preview(first_sol_svg, PREVIEW_W)
            st.components.v1.html(svg_sol_preview, height=hs + 6, scrolling=False)
            st.code(first_ascii)
        else:
            st.info("No preview available.")

    if show_log and log_lines:
        st.code("\n".join(log_lines))


    # --- ZIP outputs ---
    if svgs:
        try:
            mem = io.BytesIO()
            with zipfile.ZipFile(mem, "w", zipfile.ZIP_DEFLATED) as zf:
                for name, s in svgs:
                    zf.writestr(name, s)

                if make_png or make_pdf or make_pptx:
                    for name, s in svgs:
                        try:
                            if make_png:
                                zf.writestr(name.replace(".svg", ".png"),
                                            svg2png(bytestring=s.encode("utf-8")))
                        except Exception as e:
                            zf.writestr(name.replace(".svg", ".PNG_ERROR.txt"),
                                        (f"PNG conversion failed for {name}:\n{e}").encode("utf-8"))

                        try:
                            if make_pdf:
                                zf.writestr(name.replace(".svg", ".pdf"),
                                            svg2pdf(bytestring=s.encode("utf-8")))
                        except Exception as e:
                            zf.writestr(name.replace(".svg", ".PDF_ERROR.txt"),
                                        (f"PDF conversion failed for {name}:\n{e}").encode("utf-8"))

                        try:
                            if make_pptx and name.startswith("puzzle_"):
                                imgs_for_pptx.append(svg2png(bytestring=s.encode("utf-8")))
                        except Exception as e:
                            zf.writestr(name.replace(".svg", ".PPTX_IMAGE_ERROR.txt"),
                                        (f"PPTX image prep failed for {name}:\n{e}").encode("utf-8"))

                if make_pptx and imgs_for_pptx:
                    prs = Presentation()
                    blank = prs.slide_layouts[6]
                    for png in imgs_for_pptx:
                        slide = prs.slides.add_slide(blank)
                        slide.shapes.add_picture(io.BytesIO(png), Inches(0.5), Inches(0.5), height=Inches(6.5))
                    out = io.BytesIO(); prs.save(out)
                    zf.writestr("puzzles.pptx", out.getvalue())

            mem.seek(0)
            st.download_button("Download ZIP", data=mem.read(), file_name="word_squares.zip", mime="application/zip")
        except Exception as e:
            st.error("Failed to package outputs")
            st.exception(e)
            st.stop()
