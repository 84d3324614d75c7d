"""
Memory Allocation Visualizer: Fixed & Variable Partitioning

This application simulates classic contiguous memory allocation and replays
the result step by step:
    - Fixed partitioning (predetermined block sizes)
    - Variable partitioning (blocks split on demand)
    - Placement with First-Fit, Best-Fit or Worst-Fit
    - Step controls, adjustable playback speed, PNG/JSON export

Built with Streamlit for the web interface and Plotly for visualizations.
"""

# =============================================================================
# IMPORTS
# =============================================================================

import time                                  # For pacing auto-play
from typing import List                      # Type hints for better code clarity

import streamlit as st                       # Web application framework
import plotly.graph_objects as go            # Interactive plotting library

from engine import (
    InvalidInputError,
    Mode,
    PlacementPolicy,
    Playback,
    allocation_labels,
    compute_stats,
    parse_sizes,
    run_simulation,
    step_header,
    trace_to_json,
)
from utils import FREE_COLOR, USED_COLOR, get_color, utilization_color


# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_BLOCKS = "100,500,200,300,600"
DEFAULT_PROCESSES = "212,417,112,426"

POLICY_LABELS = {
    PlacementPolicy.FIRST: "First-Fit",
    PlacementPolicy.BEST: "Best-Fit",
    PlacementPolicy.WORST: "Worst-Fit",
}

# Plotly mode-bar "download as png" settings (PNG export)
CHART_CONFIG = {
    "toImageButtonOptions": {"format": "png", "filename": "memory_allocation"},
}


# =============================================================================
# RENDERING HELPERS
# =============================================================================

def fixed_figure(snapshot, blocks: List[int]) -> go.Figure:
    """
    Build a stacked bar chart of the fixed blocks at one step.

    Each bar is one block; the lower (dark) part is what processes have
    taken from it, the upper (light) part is what is still free.

    Args:
        snapshot (FixedSnapshot): The step to draw
        blocks (List[int]): Original block capacities in KB

    Returns:
        go.Figure: The chart
    """
    labels = [f"B{i + 1}" for i in range(len(blocks))]
    used = [total - left for total, left in zip(blocks, snapshot.memory)]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        name="Used",
        x=labels,
        y=used,
        marker_color=USED_COLOR,
        hovertemplate="%{x}: %{y} KB used<extra></extra>",
    ))
    fig.add_trace(go.Bar(
        name="Free",
        x=labels,
        y=list(snapshot.memory),
        marker_color=FREE_COLOR,
        marker_line_color="#000",
        marker_line_width=1,
        hovertemplate="%{x}: %{y} KB free<extra></extra>",
    ))
    fig.update_layout(barmode="stack", height=420, yaxis_title="KB")
    return fig


def variable_figure(snapshot) -> go.Figure:
    """
    Build a single horizontal bar showing every partition in address order.

    Args:
        snapshot (VariableSnapshot): The step to draw

    Returns:
        go.Figure: The chart
    """
    fig = go.Figure()
    for idx, part in enumerate(snapshot.partitions):
        label = f"Part {idx + 1} ({part.size} KB) {'Free' if part.free else 'Used'}"
        fig.add_trace(go.Bar(
            name=label,
            y=["Memory"],
            x=[part.size],
            orientation="h",
            text=[label],
            marker_color=get_color(not part.free),
            marker_line_color="#000",
            marker_line_width=1,
            hovertext=[f"{label}, start={part.start} KB"],
            hoverinfo="text",
        ))
    fig.update_layout(barmode="stack", height=220, showlegend=False, xaxis_title="KB")
    return fig


def render_step(playback: Playback, config: dict):
    """
    Draw the step under the playback cursor: header, chart, event log, stats.

    Args:
        playback (Playback): Cursor over the computed trace
        config (dict): Inputs the trace was computed from
    """
    snapshot = playback.current
    blocks, processes = config["blocks"], config["processes"]

    step_line, mode_line = step_header(
        playback.index, len(playback.steps), config["mode"], config["policy"]
    )
    st.subheader(step_line)
    st.caption(mode_line)

    chart_col, log_col = st.columns([2, 1])

    # ----- Memory Visualization -----
    with chart_col:
        if config["mode"] == Mode.FIXED:
            fig = fixed_figure(snapshot, blocks)
        else:
            fig = variable_figure(snapshot)
        st.plotly_chart(
            fig,
            use_container_width=True,
            config=CHART_CONFIG,
            key=f"memory-chart-{playback.index}",
        )

    # ----- Event Log (allocation per process so far) -----
    with log_col:
        st.markdown("**Allocations**")
        for target, line in zip(snapshot.allocation, allocation_labels(snapshot, processes)):
            if target is None:
                st.markdown(f":red[{line}]")
            else:
                st.write(line)

    # ----- Statistics -----
    stats = compute_stats(snapshot, blocks, len(processes))
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Used", f"{stats['used']} KB")
    c2.metric("Free", f"{stats['free']} KB")
    c3.metric("Allocated", f"{stats['allocated']}/{stats['processes']}")
    c4.metric("Utilization", f"{stats['utilization']:.2f}%")

    # Utilization bar, colored by how busy memory is
    bar_width = min(stats["utilization"], 100)
    st.markdown(
        f"""
        <div style="height:18px;width:100%;background:#eee;border-radius:4px;overflow:hidden;">
          <div style="height:100%;width:{bar_width}%;background:{utilization_color(stats['utilization'])};"></div>
        </div>
        """,
        unsafe_allow_html=True,
    )


# =============================================================================
# STREAMLIT UI - Web Application Interface
# =============================================================================

st.set_page_config(page_title="Memory Allocation Visualizer", layout="wide")
st.title("Memory Allocation Visualizer: Fixed & Variable Partitioning")

# -----------------------------------------------------------------------------
# SIDEBAR - Simulation Settings
# -----------------------------------------------------------------------------

st.sidebar.header("Simulation Settings")

block_input = st.sidebar.text_input("Block sizes (KB, comma separated)", value=DEFAULT_BLOCKS)
process_input = st.sidebar.text_input("Process sizes (KB, comma separated)", value=DEFAULT_PROCESSES)

mode = st.sidebar.selectbox(
    "Partitioning mode",
    options=list(Mode.ALL),
    format_func=lambda m: m.capitalize(),
)

policy = st.sidebar.selectbox(
    "Algorithm",
    options=list(PlacementPolicy.ALL),
    format_func=POLICY_LABELS.get,
)

# Playback speed multiplier (1x = one step every 1.2 s)
run_speed = st.sidebar.slider("Playback speed", min_value=0.5, max_value=5.0, value=1.0, step=0.5)

# -----------------------------------------------------------------------------
# SESSION STATE - Computed Trace Persistence
# -----------------------------------------------------------------------------

if st.sidebar.button("Start Simulation"):
    try:
        blocks = parse_sizes(block_input, "block size")
        processes = parse_sizes(process_input, "process size")
        steps = run_simulation(mode, blocks, processes, policy)
    except InvalidInputError as e:
        # Drop the previous run so it is not shown against the new inputs
        st.session_state.pop("playback", None)
        st.session_state.pop("config", None)
        st.sidebar.error(str(e))
    else:
        st.session_state.playback = Playback(steps, run_speed)
        st.session_state.config = {
            "mode": mode,
            "policy": policy,
            "blocks": blocks,
            "processes": processes,
        }
        st.sidebar.success(f"Simulated {len(steps)} allocation requests")

if "playback" not in st.session_state:
    st.info("Enter block and process sizes, then click **Start Simulation**.")
    st.stop()

playback: Playback = st.session_state.playback
config: dict = st.session_state.config
playback.set_speed(run_speed)

# -----------------------------------------------------------------------------
# PLAYBACK CONTROLS
# -----------------------------------------------------------------------------

prev_col, next_col, play_col, pause_col, export_col = st.columns(5)

if prev_col.button("◀ Previous"):
    playback.prev()
if next_col.button("Next ▶"):
    playback.next()
play = play_col.button("Play")
# Any click ends the current Streamlit run, which stops the play loop
pause = pause_col.button("Pause")

# Trace export (PNG export is on the chart's mode bar)
export_col.download_button(
    "Export JSON",
    data=trace_to_json(playback.steps),
    file_name="allocation_trace.json",
    mime="application/json",
)

st.markdown("---")

# -----------------------------------------------------------------------------
# MAIN CONTENT AREA
# -----------------------------------------------------------------------------

view = st.empty()

if play and not pause:
    # Auto-advance until the last step; Streamlit redraws the placeholder
    while True:
        with view.container():
            render_step(playback, config)
        if playback.at_end:
            break
        time.sleep(playback.interval)
        playback.next()
else:
    with view.container():
        render_step(playback, config)

# =============================================================================
# FOOTER - Usage Tips
# =============================================================================

st.markdown("---")
st.markdown(
    "**Usage tips**:\n"
    "- Fixed mode keeps the block boundaries; a block can take several processes while it has room.\n"
    "- Variable mode pools all blocks into one region and splits it per process.\n"
    "- Try `100,500,200,300,600` with `212,417,112,426` under each algorithm and compare."
)
