from cif_pipeline.server import main

main()
