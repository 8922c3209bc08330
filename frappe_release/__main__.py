from frappe_release.cli import main

main(prog_name="frappe-release")
