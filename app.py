import logging

import gradio as gr

from table_merger.config import settings
from table_merger.export import OUTPUT_FORMATS
from table_merger.handlers_single import (
    export_sheets_archive_handler,
    export_source_handler,
    handle_sheet_change,
    prepare_source_payload,
)
from table_merger.handlers_merge import (
    APPEND_STRATEGY,
    JOIN_TYPE_CHOICES,
    STRATEGIES,
    handle_merge_files_upload,
    merge_files_handler,
    preview_merge_handler,
)
from table_merger.mapping import MAPPING_TABLE_HEADERS

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# --- UI Definition ---
with gr.Blocks(title="Table Merger") as demo:
    gr.Markdown("# Table Merger")
    gr.Markdown("Convert CSV and Excel sheets, or merge several files by stacking rows or joining on a key column.")

    # State
    single_source_state = gr.State()
    merge_sources_state = gr.State(value=[])

    with gr.Tab("Convert Sheet"):
        with gr.Row():
            # Left Panel: Input
            with gr.Column(scale=1):
                gr.Markdown("### 1. Import")
                file_input = gr.File(label="Upload CSV / TSV / XLSX", file_types=[".csv", ".tsv", ".txt", ".xlsx"])
                single_has_header = gr.Checkbox(label="Treat first row as header", value=True)
                sheet_selector = gr.Dropdown(label="Sheet", choices=[], interactive=False)
                status_msg = gr.Textbox(label="Status", interactive=False)

            # Right Panel: Export
            with gr.Column(scale=1):
                gr.Markdown("### 2. Export")
                output_format = gr.Radio(choices=OUTPUT_FORMATS, value="CSV", label="Output Format")
                output_filename = gr.Textbox(label="Output Filename (optional)", placeholder="output")
                export_btn = gr.Button("Export Data", variant="primary")
                download_output = gr.File(label="Download Result")

                gr.Markdown("### 3. Split workbook")
                split_sheets = gr.Dropdown(label="Sheets to export separately", choices=[], value=[], multiselect=True, interactive=False)
                split_btn = gr.Button("Export Selected Sheets (ZIP)")
                split_download = gr.File(label="Sheets Archive")

        single_preview = gr.JSON(label=f"Preview (first {settings.preview_rows} rows)")

        file_input.upload(
            fn=prepare_source_payload,
            inputs=[file_input, single_has_header],
            outputs=[single_source_state, sheet_selector, split_sheets, status_msg, single_preview],
        )

        sheet_selector.input(
            fn=handle_sheet_change,
            inputs=[file_input, sheet_selector, single_has_header],
            outputs=[single_source_state, status_msg, single_preview],
        )

        single_has_header.change(
            fn=handle_sheet_change,
            inputs=[file_input, sheet_selector, single_has_header],
            outputs=[single_source_state, status_msg, single_preview],
        )

        export_btn.click(
            fn=export_source_handler,
            inputs=[single_source_state, output_format, output_filename],
            outputs=[download_output, status_msg],
        )

        split_btn.click(
            fn=export_sheets_archive_handler,
            inputs=[file_input, split_sheets, single_has_header, output_filename],
            outputs=[split_download, status_msg],
        )

    with gr.Tab("Merge Files"):
        gr.Markdown("### 1. Upload files")
        merge_files = gr.File(label="Files to merge", file_types=[".csv", ".tsv", ".txt", ".xlsx"], file_count="multiple")
        with gr.Row():
            merge_has_header = gr.Checkbox(label="Treat first row as header", value=True)
            merge_all_sheets = gr.Checkbox(label="Merge every sheet of each workbook", value=False)
        merge_upload_status = gr.Textbox(label="Files Status", interactive=False)

        gr.Markdown("### 2. Configure merge")
        with gr.Row():
            strategy_selector = gr.Radio(choices=STRATEGIES, value=APPEND_STRATEGY, label="Merge Strategy")
            include_provenance = gr.Checkbox(label=f"Add '{settings.provenance_column}' column (append only)", value=True)
        with gr.Row():
            join_type_selector = gr.Radio(choices=JOIN_TYPE_CHOICES, value="left", label="Join Type")
            key_column_selector = gr.Dropdown(
                label="Key Column",
                choices=[],
                interactive=False,
                info="Columns present in every file.",
            )

        gr.Markdown("Rename or drop join output columns (clear an output name to drop that column).")
        mapping_table = gr.Dataframe(
            headers=MAPPING_TABLE_HEADERS,
            datatype=["number", "str", "str", "str"],
            col_count=(4, "fixed"),
            interactive=True,
            label="Column Mapping",
        )

        gr.Markdown("### 3. Merge & export")
        with gr.Row():
            merge_format = gr.Radio(choices=OUTPUT_FORMATS, value="CSV", label="Output Format")
            merge_filename = gr.Textbox(label="Merged Output Filename", placeholder="merged")
        with gr.Row():
            merge_preview_btn = gr.Button("Preview")
            merge_btn = gr.Button("Merge & Download", variant="primary")
        merge_download = gr.File(label="Merged Result")
        merge_status = gr.Textbox(label="Merge Status", interactive=False)
        merge_preview = gr.JSON(label=f"Preview (first {settings.preview_rows} rows)")

        upload_inputs = [merge_files, merge_has_header, key_column_selector, merge_all_sheets]
        upload_outputs = [merge_sources_state, merge_upload_status, key_column_selector, mapping_table]
        merge_files.upload(fn=handle_merge_files_upload, inputs=upload_inputs, outputs=upload_outputs)
        merge_has_header.change(fn=handle_merge_files_upload, inputs=upload_inputs, outputs=upload_outputs)
        merge_all_sheets.change(fn=handle_merge_files_upload, inputs=upload_inputs, outputs=upload_outputs)

        merge_inputs = [
            merge_sources_state,
            strategy_selector,
            join_type_selector,
            key_column_selector,
            mapping_table,
            include_provenance,
        ]

        merge_preview_btn.click(
            fn=preview_merge_handler,
            inputs=merge_inputs,
            outputs=[merge_preview],
        )

        merge_btn.click(
            fn=merge_files_handler,
            inputs=merge_inputs + [merge_format, merge_filename],
            outputs=[merge_download, merge_status, merge_preview],
        )

if __name__ == "__main__":
    demo.launch(server_name=settings.host, server_port=settings.port)
