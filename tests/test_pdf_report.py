from models.risk import RegisterSummary
from reporting.pdf_report import PDFReportGenerator
from services.risk_service import RegisterService


def test_report_is_written(mock_client, tmp_path):
    service = RegisterService(client=mock_client)
    summary = service.run()

    path = PDFReportGenerator(summary, asset_table=service.asset_table,
                              output_dir=tmp_path).generate()

    with open(path, "rb") as fh:
        assert fh.read(4) == b"%PDF"
    assert "RiskRegister_Example_Corp_" in path


def test_empty_register_still_renders(tmp_path):
    summary = RegisterSummary(organization_name="R&D <Lab>", total_risks=0, rated_risks=0)

    path = PDFReportGenerator(summary, output_dir=tmp_path).generate()

    with open(path, "rb") as fh:
        assert fh.read(4) == b"%PDF"
